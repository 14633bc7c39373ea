from dotenv import load_dotenv

def load_env() -> None:
    # Loads .env if present; no-op if missing. Must run before settings import.
    load_dotenv()
