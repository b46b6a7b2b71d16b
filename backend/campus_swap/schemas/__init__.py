"""HTTP request and response shapes (camelCase on the wire)."""
