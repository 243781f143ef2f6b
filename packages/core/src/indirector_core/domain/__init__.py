from .envelope import EnvelopeMixin, Indirected, is_expired, stamp_expiration, utcnow

__all__ = ["EnvelopeMixin", "Indirected", "is_expired", "stamp_expiration", "utcnow"]
