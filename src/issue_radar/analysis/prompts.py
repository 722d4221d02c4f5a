"""Prompt templates for issue analysis."""

DIRECT_ANALYSIS_TEMPLATE = """You are an expert software analyst. Analyze the following GitHub issues and respond to the user's request.

USER REQUEST: {user_prompt}

GITHUB ISSUES:
{issues_text}

Please provide a clear, structured analysis based on the issues above."""

CHUNK_SUMMARY_INSTRUCTION = (
    "Summarize the key themes, common problems, and notable issues in this batch "
    "(batch {batch} of {total}). Be concise."
)

FINAL_SYNTHESIS_INSTRUCTION = "Based on these summaries of GitHub issues from a repository, {user_prompt}"


def build_prompt(user_prompt: str, issues_text: str) -> str:
    """Whole-corpus prompt: every provider call goes through this wrapper."""
    return DIRECT_ANALYSIS_TEMPLATE.format(user_prompt=user_prompt, issues_text=issues_text)


def build_chunk_prompt(chunk: str, batch: int, total: int) -> str:
    return build_prompt(CHUNK_SUMMARY_INSTRUCTION.format(batch=batch, total=total), chunk)


def build_synthesis_prompt(user_prompt: str, combined_summaries: str) -> str:
    return build_prompt(FINAL_SYNTHESIS_INSTRUCTION.format(user_prompt=user_prompt), combined_summaries)
