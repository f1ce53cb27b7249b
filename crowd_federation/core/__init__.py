"""Core Federation Logic Module

This module exposes Crowd users and groups through a read-only,
host-independent identity model.

Module Structure:
    - crowd/              : Crowd REST client, records, restrictions, exceptions
    - storage_id.py       : Namespaced ids (f:<provider>:<name>)
    - errors.py           : ReadOnlyError, DirectoryAccessError, ConfigurationError
    - groups.py           : GroupNode and the per-lookup GroupHierarchy arena
    - group_resolver.py   : Builds a user's group trees from Crowd memberships
    - user_adapter.py     : Read-only user model
    - provider.py         : Lookup, search, membership and password checks
    - provider_factory.py : Configuration validation and provider construction

Usage Pattern:
    Import explicitly when needed:
        from crowd_federation.core.provider_factory import CrowdStorageProviderFactory
        from crowd_federation.core.errors import DirectoryAccessError

        provider = CrowdStorageProviderFactory().create({
            "url": "https://crowd.example.com/crowd",
            "applicationName": "keycloak",
            "applicationPassword": "secret",
        })
        user = provider.get_user_by_username("alice")
"""
