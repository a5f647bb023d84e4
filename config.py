# vpnhub/config.py

import os

# --- Discovery Configuration ---
# API key for the generative AI search service.
# Leave empty to disable AI discovery (the hub keeps working on stored links).
API_KEY = os.environ.get("API_KEY") or os.environ.get("GEMINI_API_KEY", "")

# Model used for the grounded search request
DISCOVERY_MODEL = "gemini-3-pro-preview"

# Model used for the short pool summary
SUMMARY_MODEL = "gemini-3-flash-preview"

# Fixed instruction sent with every discovery request.
DISCOVERY_PROMPT = """
请搜索并提供最新的免费 VPN 订阅链接（2025年活跃）。
要求：
1. 优先寻找 GitHub 仓库中的 raw 文件路径，例如以 .yaml, .yml, .txt 结尾的原始链接。
2. 分类包含：Clash (YAML 格式), V2Ray/Trojan/SS (URI 列表或 Base64 格式)。
3. 排除 GitHub 仓库首页，只提供具体的订阅文件 URL。
4. 格式：每行一个 URL，不要有任何额外解释。

重点搜索源：
- raw.githubusercontent.com/.../clash.yaml
- raw.githubusercontent.com/.../v2ray.txt
- node.freeclashx.com
- 其他活跃的聚合订阅源。
"""

# --- Summary Configuration ---
SUMMARY_PROMPT_TEMPLATE = "分析结果：当前节点池共 {total} 个，极速节点 {fast} 个。请提供 20 字以内的专业简评。"
SUMMARY_NO_KEY_TEXT = "本地测试：同步链路正常。"
SUMMARY_EMPTY_TEXT = "数据已更新，节点质量优良。"
SUMMARY_ERROR_TEXT = "节点自动巡检完成。"

# --- Parser Configuration ---
# Hosts the URL extractor accepts when scanning free-form AI output.
URL_HOSTS = [
    "raw.githubusercontent.com",
    "github.com",
    "nodesave.com",
    "freeclashx.com",
]

# A candidate must contain at least one of these (lower-cased substring test)
SUBSCRIPTION_KEYWORDS = ["sub", "clash", "v2ray", "node", "yaml", "yml", "txt", "free", "subscribe"]

# ...and none of these (repository browse pages, settings pages, search engines)
NON_SUBSCRIPTION_MARKERS = ["/tree/main", "/blob/main", "/settings/", "google.com", "bing.com"]

# Titles used when the discovery source gives none
DEFAULT_LINK_TITLE = "自动采集源"
UNTITLED_LINK_TITLE = "未命名源"
EXTRACTED_TITLE_TEMPLATE = "AI 提取节点 {index}"

# --- Validator Configuration ---
# Timeout for a single liveness probe (in seconds)
PROBE_TIMEOUT = 6

# Ping recorded for a failed probe (milliseconds)
FAILED_PING = 9999

# Links with a ping below this value count as fast (milliseconds)
FAST_PING_THRESHOLD = 2000

# Delay between merging a new batch and probing it (in seconds)
VALIDATION_START_DELAY = 0.1

# --- Store Configuration ---
# Maximum number of links kept in the pool, newest first
MAX_STORED_LINKS = 200

# JSON file holding the persisted pool, and the key the pool is stored under
STORE_FILE = os.path.join("data", "vpn_sub_links.json")
STORE_KEY = "vpn_sub_links"

# --- Output Configuration ---
# Directory to save exported files
OUTPUT_DIR = "output"

# Exported file name without extension: VPN_<type>_<YYYY-MM-DD>
EXPORT_FILENAME_TEMPLATE = "VPN_{type}_{date}"

# Filename for the Clash proxy-provider configuration
CLASH_PROVIDER_FILENAME = "clash_providers.yaml"

# Refresh interval of each Clash proxy provider (in seconds)
CLASH_PROVIDER_INTERVAL = 3600

# URL used by Clash to health-check provider nodes
CLASH_HEALTH_CHECK_URL = "http://www.gstatic.com/generate_204"
