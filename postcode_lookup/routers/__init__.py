"""Request routers mounted under the API prefix."""
