import logging
import os

from dotenv import find_dotenv, load_dotenv, set_key

from core.errors import ConfigurationError

KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")
NOISY_LOGGERS = ("httpx", "httpcore", "google_genai", "google_genai.models")


def quiet_logs():
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging(level: str = "INFO"):
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root.setLevel(level)
    quiet_logs()


def load_env() -> str:
    # Process env wins over .env so a runtime override from the sidebar sticks
    load_dotenv(override=False)
    # GEMINI_API_KEY first, GOOGLE_API_KEY as the SDK's alternative name
    return os.getenv("GEMINI_API_KEY", "") or os.getenv("GOOGLE_API_KEY", "")


def require_api_key(explicit: str = "") -> str:
    key = (explicit or "").strip() or load_env().strip()
    if not key:
        raise ConfigurationError("No API key configured. Set GEMINI_API_KEY in .env or in the sidebar.")
    return key


def get_key_info(key: str) -> str:
    if not key:
        return "no key"
    return f"key_len={len(key)} | ends_with=…{key[-4:]}"


def validate_key_format(k: str) -> bool:
    # Not a strict regex: just non-empty and no whitespace
    return bool(k and k.strip() and " " not in k)


def set_runtime_key(new_key: str):
    """
    Override the key in the current process environment (does not touch .env).
    """
    for var in KEY_VARS:
        os.environ[var] = new_key


def clear_runtime_key():
    for var in KEY_VARS:
        os.environ.pop(var, None)


def write_dotenv_key(new_key: str) -> bool:
    """
    Persist the key into .env (created in cwd if missing) and apply it at runtime.
    Returns False if the file cannot be written.
    """
    env_path = find_dotenv(usecwd=True)
    if not env_path:
        env_path = os.path.join(os.getcwd(), ".env")
    try:
        open(env_path, "a", encoding="utf-8").close()
        set_key(env_path, "GEMINI_API_KEY", new_key)
    except OSError:
        logging.getLogger(__name__).exception("could not write %s", env_path)
        return False
    set_runtime_key(new_key)
    return True
