"""MCP Prompts — pre-built interaction templates for vitals tracking."""

from __future__ import annotations

from fastmcp import FastMCP


def register_health_prompts(mcp: FastMCP) -> None:
    """Register vitals MCP prompts."""

    @mcp.prompt()
    def vitals_check_in_prompt() -> str:
        """Prompt template for a daily vitals check-in."""
        return """I'd like to do my vitals check-in. Please:

1. Ask me for today's readings (blood pressure, heart rate, blood sugar,
   temperature, oxygen saturation, weight), skipping any I don't have
2. Record them
3. Show my dashboard and point out anything flagged as alert or critical
4. Tell me how today compares with my recent readings

Keep it short and friendly."""

    @mcp.prompt()
    def document_import_prompt(document_type: str = "clinic visit summary") -> str:
        """Prompt template for importing vitals from a medical document."""
        return f"""I have a {document_type} with my vital signs on it. Please:

1. Import the vital signs from the document I attach
2. Show me exactly which values were read before anything else
3. Show my updated dashboard

If no vital signs are found, tell me and suggest retaking the photo."""
