"""
Database module - The encrypted credential database.

Layers, bottom up:
- models: AccountRecord and the in-memory AccountCollection
- codec: canonical plaintext serialization of the collection
- container: binary file layout and atomic writes
- database: the open session tying key, records and file together

Security Considerations:
- Nothing is written to disk unencrypted
- The key lives only in a zeroizable buffer for the session
"""

from fpvault.db.database import Database
from fpvault.db.models import AccountCollection, AccountRecord

__all__ = ["AccountCollection", "AccountRecord", "Database"]
