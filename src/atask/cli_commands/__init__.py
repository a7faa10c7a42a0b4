"""Click command modules registered onto the ``atask`` group."""
