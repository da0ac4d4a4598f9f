"""Account verification and session-issuance service."""
