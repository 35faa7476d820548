"""Nova wallet client.

Command-line wallet for Nova accounts: derives checksummed account
addresses from key material, signs payloads into portable envelopes, and
runs the two-step email login that mints short-lived bearer tokens.
"""

__version__ = "0.4.0"
