"""Session record store with reactive revalidation."""
