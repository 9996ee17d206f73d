"""rentalops: rental-property management API over a hosted Postgres backend."""

__version__ = "0.1.0"
