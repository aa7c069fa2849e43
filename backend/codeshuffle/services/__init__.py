"""Services - imperative shell: DB-bound handlers around the pure core."""
