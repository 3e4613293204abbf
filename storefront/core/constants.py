"""Storefront-wide constants.

Centralizes storage keys, paths and defaults so the cart page and the
checkout never drift apart.
"""

# ============== PERSISTED STATE KEYS ==============
CART_STORAGE_KEY = "cart-storage"
AUTH_STORAGE_KEY = "auth-storage"

# ============== API ==============
DEFAULT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_API_TIMEOUT = 10  # seconds
USER_API_PREFIX = "/user"
ADMIN_API_PREFIX = "/admin"
PUBLIC_API_PREFIX = ""

# List fetches (addresses, orders) retry transparently this many times
DEFAULT_LIST_FETCH_RETRIES = 3
RETRY_BACKOFF_SECONDS = 0.2

# ============== NAVIGATION ==============
LOGIN_PATH = "/login"
ADMIN_LOGIN_PATH = "/admin/login"
CART_PATH = "/cart"
ORDERS_PATH = "/orders"

# ============== SHIPPING ==============
DEFAULT_FREE_SHIPPING_THRESHOLD = 500
DEFAULT_FLAT_SHIPPING_FEE = 50

# ============== MONEY ==============
DEFAULT_CURRENCY_SYMBOL = "₹"

# ============== PAGINATION ==============
MAX_PAGE_SIZE = 100

# ============== PAYMENT ==============
PAYMENT_CASH_ON_DELIVERY = "cod"
PAYMENT_ONLINE = "online"
ENABLED_PAYMENT_METHODS = frozenset({PAYMENT_CASH_ON_DELIVERY})
