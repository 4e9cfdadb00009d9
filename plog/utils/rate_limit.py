from slowapi import Limiter
from slowapi.util import get_remote_address

# In-memory counters per client address; state lives outside comment data
limiter = Limiter(key_func=get_remote_address)
