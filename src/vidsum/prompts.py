"""
LLM prompts used by the summarisation stages.

All prompts are centralized here for easy maintenance and consistency.
Templates are filled with str.format.
"""

# ============================================================================
# Overall summary section headers
# ============================================================================

# Bracketed headers delimit the four sections of the overall summary
# response. The parser matches them by substring, so keep them distinctive.
THEME_HEADER = "【主要主题】"
KEY_POINTS_HEADER = "【关键要点】"
FULL_SUMMARY_HEADER = "【完整总结】"
CONCLUSION_HEADER = "【核心结论】"

DEFAULT_MAIN_THEME = "Failed to generate theme"
DEFAULT_KEY_POINT = "Unable to extract key points"
DEFAULT_FULL_SUMMARY = "Failed to generate full summary"
DEFAULT_CONCLUSION = "Failed to generate conclusion"

# ============================================================================
# Segment Summary Prompts
# ============================================================================

SEGMENT_SUMMARY_PROMPT = """Write a detailed summary of the following video segment in {language}.

Requirements:
1. Be detailed and complete; highlight the core content and key points of this segment
2. Use clear, easy-to-read {language}
3. Keep the summary between 300 and 500 characters, proportional to the original
4. If the content is in another language, understand it first and then summarise in {language}
5. Stay objective and accurate; do not add personal opinions
6. Record concrete data, names, dates and numbers exactly

Video segment content:
{text}

Return only the detailed summary, without any other formatting or commentary:"""

NO_SUBTITLE_SEGMENT_PROMPT = """The video "{title}" has no subtitles for the segment {start} - {end}.

In {language}, write one or two sentences noting that this part of the video
({start} - {end}) has no caption content available, and that viewers should
watch this time range directly for details. Do not invent what is said.

Return only the note:"""

# ============================================================================
# Overall Summary Prompts
# ============================================================================

_OVERALL_FORMAT = (
    THEME_HEADER + "\n"
    "{theme_instruction}\n\n"
    + KEY_POINTS_HEADER + "\n"
    "- Point 1\n"
    "- Point 2\n"
    "- Point 3\n"
    "- Point 4\n"
    "- Point 5\n\n"
    + FULL_SUMMARY_HEADER + "\n"
    "{summary_instruction}\n\n"
    + CONCLUSION_HEADER + "\n"
    "{conclusion_instruction}"
)

OVERALL_SUMMARY_PROMPT = """Based on the segment summaries below, write a complete summary report for this video in {language} with the following four parts.

Video title: {title}
Video duration: {duration}

Segment summaries:
{segment_summaries}

Return the result in exactly this format:

""" + _OVERALL_FORMAT.format(
    theme_instruction="One sentence stating the main theme of the video",
    summary_instruction=(
        "A complete summary of 300-500 characters covering the main content of the video, "
        "clearly structured and logically coherent"
    ),
    conclusion_instruction="Two or three sentences on the core value and significance of the video",
) + """

Keep the section headers exactly as shown and do not add any other commentary or formatting:"""

TITLE_ONLY_SUMMARY_PROMPT = """No caption or transcript content is available for this video. Only its title and duration are known.

Video title: {title}
Video duration: {duration}

Based only on the title, write a tentative summary in {language}. Make it clear that everything
is inferred from the title alone and may not reflect the actual content. Return the result in
exactly this format:

""" + _OVERALL_FORMAT.format(
    theme_instruction="One sentence on the likely theme, marked as inferred from the title",
    summary_instruction=(
        "A short paragraph describing what the video probably covers, stating that no "
        "subtitles were available"
    ),
    conclusion_instruction="One or two sentences recommending watching the video for accurate details",
) + """

Keep the section headers exactly as shown and do not add any other commentary or formatting:"""
