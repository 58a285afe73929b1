from pathlib import Path
import re

# Values used whenever a directive is missing from the parsed text
DEFAULT_LISTEN_PORT = 9100
DEFAULT_LOG_PATH = "/var/log/nginx/tcp_router.log"
DEFAULT_LOG_FORMAT = "tcp_router"
DEFAULT_UPSTREAM_NAME = "printer_down"

MIN_PORT = 1
MAX_PORT = 65535

# Name of the variable the map block writes and proxy_pass reads
ROUTING_VARIABLE = "$printer_upstream"

# Fixed preamble emitted before the stream block
STREAM_MODULE_PATH = "modules/ngx_stream_module.so"
WORKER_PROCESSES = "auto"
WORKER_CONNECTIONS = 1024

# Literal fields of the log_format directive, one quoted segment per line
LOG_FORMAT_FIELDS = (
    "ts=$time_local msec=$msec ",
    "$remote_addr:$remote_port -> $upstream_addr ",
    "status=$status bytes_sent=$bytes_sent bytes_received=$bytes_received ",
    "time=$session_time",
)

IPV4_RE = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}")

# Names, addresses and paths are written unquoted, so they must be single tokens
BARE_TOKEN_RE = re.compile(r"[^\s{};]+")

# Default file names
CONFIG_FILE_NAME = "streamrouter.yaml"
OUTPUT_FILE_NAME = Path("nginx.conf")
MODEL_SUFFIXES = {".yaml": "yaml", ".yml": "yaml", ".json": "json"}
