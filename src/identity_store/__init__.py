"""Identity entity store.

Persists users, linked provider accounts, sessions and email verification
tokens as Redis hashes, with pointer keys for the secondary lookups an
authentication layer needs (by email, by provider account, by user).
"""

__version__ = "0.1.0"
