from os import getenv
from pathlib import Path

# max number of in-flight HTTP requests across the whole fetch graph, 0 = unbounded
MAX_CONCURRENCY = int(getenv("APTDRIFT_MAX_CONCURRENCY", "16"))

# per-request timeout in seconds
HTTP_TIMEOUT = float(getenv("APTDRIFT_HTTP_TIMEOUT", "60"))

USER_AGENT = getenv("APTDRIFT_USER_AGENT", "aptdrift/0.1")

# report destination and the GitHub credential file, both relative to cwd unless absolute
OUTPUT_PATH = Path(getenv("APTDRIFT_OUTPUT", "index.html"))
GITHUB_TOKEN_FILE = Path(getenv("APTDRIFT_GITHUB_TOKEN_FILE", ".github_token"))

GITHUB_API_URL = getenv("APTDRIFT_GITHUB_API_URL", "https://api.github.com/")
