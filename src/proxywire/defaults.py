from proxywire.lock_mode import LockMode

DEFAULT_LOCK_MODE = LockMode.THREAD

DEFAULT_PROXY_MODULE = "proxywire.generated"

PROXY_CLASS_NAME_TEMPLATE = "{decorator}_{contract}_proxy"
