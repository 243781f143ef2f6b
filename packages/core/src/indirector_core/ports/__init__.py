from .queue import IQueueClient, ISubscription
from .terminus import IAuthorizer, IFilter, ITerminus

__all__ = ["IAuthorizer", "IFilter", "IQueueClient", "ISubscription", "ITerminus"]
