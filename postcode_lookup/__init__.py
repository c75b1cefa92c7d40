"""UK postcode and address lookup service."""
