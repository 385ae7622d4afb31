"""AdStudio backend."""
