import os
from dotenv import load_dotenv
load_dotenv()

def _bool(v: str, default=False):
    if v is None: return default
    return v.lower() in ("1","true","yes","on")

class CFG:
    BINANCE_API_KEY = os.getenv("BINANCE_API_KEY","")
    BINANCE_API_SECRET = os.getenv("BINANCE_API_SECRET","")
    BINANCE_API_URL = os.getenv("BINANCE_API_URL","https://api.binance.com")
    BINANCE_WS_URL = os.getenv("BINANCE_WS_URL","wss://stream.binance.com:9443")
    RECV_WINDOW = int(os.getenv("RECV_WINDOW","5000"))
    REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT","10"))

    QUOTE_ASSET = os.getenv("QUOTE_ASSET","USDT").strip().upper()
    KLINE_INTERVAL = os.getenv("KLINE_INTERVAL","1m")
    WINDOW_SIZE = int(os.getenv("WINDOW_SIZE","300"))
    HOLD_MINUTES = int(os.getenv("HOLD_MINUTES","10"))   # declared, not enforced
    MIN_NOTIONAL = float(os.getenv("MIN_NOTIONAL","10"))

    AUTO_MODE = _bool(os.getenv("AUTO_MODE","false"))
    LOG_LEVEL = os.getenv("LOG_LEVEL","INFO").upper()

    SMTP_HOST = os.getenv("SMTP_HOST","")
    SMTP_PORT = int(os.getenv("SMTP_PORT","465"))
    SMTP_USE_SSL = _bool(os.getenv("SMTP_USE_SSL","true"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME","")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD","")
    MAIL_SUBJECT = os.getenv("MAIL_SUBJECT","Spot bot report")
    MAIL_ADDRESS = os.getenv("MAIL_ADDRESS","")

    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN","")
    TELEGRAM_CHAT_ID = os.getenv("TELEGRAM_CHAT_ID","")
