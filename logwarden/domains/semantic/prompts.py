"""Fixed prompts for the semantic detector's provider calls."""

from logwarden.domains.logs.models import LogEntry

SYSTEM_PROMPT = (
    "You are an expert cybersecurity analyst specializing in log analysis and "
    "anomaly detection. Analyze the provided log entry and identify potential "
    "security threats, unusual patterns, or anomalous behavior. Respond with JSON only."
)

_ANALYSIS_TEMPLATE = """Analyze this network security log for threats and anomalies. Be highly sensitive to security indicators.

Log Entry:
- Timestamp: {timestamp}
- Source IP: {source}
- Destination IP: {destination}
- User: {user}
- Action: {action}
- URL: {url}
- Status Code: {status_code}
- Bytes: {byte_count}
- User Agent: {user_agent}
- Category: {category}

CRITICAL THREAT PATTERNS:
1. BLOCKED ACTIONS (403 status): Indicate security policy violations - score 7+
2. MALICIOUS DOMAINS: .ru, .biz, unknown-*, suspicious-*, tor-*, dark-*, proxy-* - score 8+
3. MALWARE CATEGORIES: Any "Malware" or "Proxy Avoidance" category - score 9+
4. SUSPICIOUS USER AGENTS: curl/*, automated tools, non-browser agents on blocked content - score 8+
5. LARGE DATA TRANSFERS: >100KB (100,000+ bytes) especially from unknown sources - score 7+
6. PHISHING/MARKET TERMS: URLs with phish, malware, buy, dark-market - score 9+

Be aggressive with scoring. Any combination of blocked + suspicious should score 8+.

Respond with JSON:
{{
  "isAnomaly": boolean,
  "riskScore": number (0-10, be aggressive - blocked malicious = 8+),
  "anomalyType": string,
  "description": string,
  "confidence": number (0-1),
  "explanation": string,
  "recommendations": array of strings
}}"""


def build_analysis_prompt(entry: LogEntry) -> str:
    """Render the user prompt for one entry; absent fields show as N/A."""
    return _ANALYSIS_TEMPLATE.format(
        timestamp=entry.timestamp,
        source=entry.source_address,
        destination=entry.destination_address or "N/A",
        user=entry.user or "N/A",
        action=entry.action,
        url=entry.url or "N/A",
        status_code=entry.status_code or "N/A",
        byte_count=entry.byte_count or "N/A",
        user_agent=entry.user_agent or "N/A",
        category=entry.category or "N/A",
    )
