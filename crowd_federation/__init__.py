"""Read-only Keycloak-style user federation backed by Atlassian Crowd."""
