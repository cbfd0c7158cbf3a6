"""Trustworthy client-IP resolution behind reverse proxies and CDNs."""
