"""Federated identity verifier adapters."""

from .google import GoogleIdentityVerifier

__all__ = ["GoogleIdentityVerifier"]
