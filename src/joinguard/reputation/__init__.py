"""
Address reputation lookups for joining users.

- **address_resolver.py**: Turns the host part of an IRC prefix into a network
  address, passing literal addresses through and resolving hostnames with a
  bounded timeout.

- **reputation_client.py**: Queries the VPN/proxy reputation HTTP service for
  a single address.

- **reputation_cache.py**: JSON-backed verdict cache with a single in-flight
  fetch per address.
"""
