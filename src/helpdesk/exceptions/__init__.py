# exceptions/
# ├── base.py                    # app-level errors raised by repositories (RepositoryError, DuplicateError, ...)
# ├── integrity_classifier.py    # what the database rejected (unique / not null / foreign key / check)
# └── mapper.py                  # turns classified IntegrityErrors into app-level errors, db_error_handler

from .base import (
    RepositoryError,
    NotFoundError,
    DuplicateError,
    InvalidFieldError,
    InvalidInputError,
)
from .mapper import db_error_handler, raise_mapped_integrity_error

__all__ = [
    "RepositoryError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
    "InvalidInputError",
    "db_error_handler",
    "raise_mapped_integrity_error",
]
