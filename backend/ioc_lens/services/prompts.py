import json
from typing import Any

IOC_EXTRACTION_INSTRUCTION = """You are a cybersecurity expert specializing in extracting Indicators of Compromise (IOCs) from web content.
Analyze the provided content and identify any potential IOCs such as:
- IP addresses
- Domain names
- URLs
- File hashes (MD5, SHA1, SHA256)
- Email addresses
- Filenames and paths
- CVE identifiers, registry keys, process names, command lines, user agents and scripts

For each IOC, determine its risk level (high, medium, low, or unknown) and provide a brief description of where it was found and what makes it suspicious.

Organize the IOCs by category, and provide a count for each category. The count must equal the number of indicators listed under that category.

Return the results as a JSON object with this structure:
{
  "indicators": [
    {
      "value": "actual indicator value",
      "category": "ip|domain|url|hash|email|file|cve|registry|process|path|command|user-agent|script",
      "riskLevel": "high|medium|low|unknown",
      "description": "brief description of where found and why suspicious"
    }
  ],
  "categories": [
    {
      "name": "category name",
      "count": 0,
      "indicators": [array of indicator objects for this category]
    }
  ]
}"""

SEARCH_QUERY_INSTRUCTION = """You are a SIEM expert specializing in QRadar and Microsoft Sentinel. Generate search queries for the provided IOCs.

For QRadar, create AQL queries that search for the provided IOCs in appropriate log sources.
For Microsoft Sentinel, create KQL queries that search for the provided IOCs.

Group queries by IOC type (IP, domain, hash, etc.). Each query should include:
1. A descriptive name
2. The actual query formatted properly for the respective system

Return the results as a JSON object with this structure:
{
  "qradar": [
    {
      "name": "descriptive name",
      "query": "AQL query"
    }
  ],
  "sentinel": [
    {
      "name": "descriptive name",
      "query": "KQL query"
    }
  ]
}"""


def extraction_message(content: str) -> str:
    return f"Analyze this web content for IOCs:\n\n{content}"


def search_query_message(indicators: list[dict[str, Any]]) -> str:
    return f"Generate search queries for these IOCs:\n\n{json.dumps(indicators)}"
