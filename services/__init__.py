"""Business operations built on the domain model and repositories."""
