import os
from dotenv import load_dotenv

# Load Environment Variables from project root .env
env_path = os.path.join(os.path.dirname(__file__), "../.env")
load_dotenv(env_path)


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # SOL-EXEC CONFIGURATION (Environment-Based)
    # ═══════════════════════════════════════════════════════════════════

    # --- Console ---
    SILENT_MODE = _env_bool("SILENT_MODE", "false")

    # --- Logging ---
    LOG_TO_FILE = _env_bool("LOG_TO_FILE", "true")
    LOG_DIR = os.getenv(
        "LOG_DIR", os.path.abspath(os.path.join(os.path.dirname(__file__), "../logs"))
    )

    # ═══════════════════════════════════════════════════════════════════
    # RPC ENDPOINT POOL
    # ═══════════════════════════════════════════════════════════════════
    DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

    # Comma separated, order = rotation order
    RPC_ENDPOINTS = os.getenv("RPC_ENDPOINTS", DEFAULT_RPC_URL)
    RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "10"))

    # ═══════════════════════════════════════════════════════════════════
    # SUBMISSION
    # ═══════════════════════════════════════════════════════════════════
    SUBMIT_MAX_ATTEMPTS = int(os.getenv("SUBMIT_MAX_ATTEMPTS", "3"))  # Transient transport errors only
    SUBMIT_RETRY_DELAY_S = float(os.getenv("SUBMIT_RETRY_DELAY_S", "0.5"))
    CONFIRM_TIMEOUT_S = float(os.getenv("CONFIRM_TIMEOUT_S", "30"))
    NODE_MAX_RETRIES = int(os.getenv("NODE_MAX_RETRIES", "3"))  # Node-side rebroadcast

    # ═══════════════════════════════════════════════════════════════════
    # SIMULATION FALLBACK (used when no quote provider is wired in)
    # ═══════════════════════════════════════════════════════════════════
    FALLBACK_DISCOUNT_BPS = int(os.getenv("FALLBACK_DISCOUNT_BPS", "500"))  # 5% haircut
    FALLBACK_PRICE_IMPACT = float(os.getenv("FALLBACK_PRICE_IMPACT", "0.05"))

    @staticmethod
    def rpc_endpoints() -> list:
        """Parse RPC_ENDPOINTS into an ordered, de-duplicated list."""
        urls = [u.strip() for u in Settings.RPC_ENDPOINTS.split(",")]
        return list(dict.fromkeys(u for u in urls if u))
