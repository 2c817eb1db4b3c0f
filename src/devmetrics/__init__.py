"""Weekly development metrics for a GitHub repository."""
