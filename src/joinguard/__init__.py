"""
Joinguard - IRC join screening against VPN/proxy reputation data

Joinguard sits in IRC channels and checks every joining user's address with a
reputation service. Users connecting through a VPN, proxy, Tor exit or privacy
relay are quieted and the configured operators are told why.

Core Components:

- **Address Resolver**: Maps the host from a user's prefix to an IP address
- **Reputation Cache**: JSON-backed verdict cache with one in-flight lookup per address
- **Reputation Client**: Single-attempt HTTP client for the reputation service
- **Exemptions**: Case-insensitive nickname allow-list
- **Join Handler**: The per-join pipeline and moderation action
- **IRC Client**: pydle transport that feeds joins in and sends actions out

Usage:
    from joinguard.main import main
    main()
"""
