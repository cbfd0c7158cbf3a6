"""Operator CLI for the realip service."""
