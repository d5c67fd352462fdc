"""Remote fetchers and the fetch error taxonomy."""
