"""AnI Vault: bank chat transcripts into a user-granted folder."""

__version__ = "0.1.0"
