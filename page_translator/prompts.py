from typing import NamedTuple, Optional, Sequence

from page_translator.config import (INPUT_TAG_IN, INPUT_TAG_OUT, LANGUAGE_TAG_IN,
                                    LANGUAGE_TAG_OUT, TRANSLATE_TAG_IN,
                                    TRANSLATE_TAG_OUT, create_placeholder)


class PromptPair(NamedTuple):
    """A pair of system and user prompts for LLM translation."""
    system: str
    user: str


# ============================================================================
# SHARED PROMPT SECTIONS
# ============================================================================

def _get_output_format_section(
    translate_tag_in: str,
    translate_tag_out: str,
    input_tag_in: str,
    input_tag_out: str,
    example_format: str = "Your translated markup here"
) -> str:
    """
    Generate standardized output format instructions.

    Returns:
        str: Formatted output format instructions
    """
    return f"""# OUTPUT FORMAT

**CRITICAL OUTPUT RULES:**
1. Translate ONLY the markup between "{input_tag_in}" and "{input_tag_out}" tags
2. Your response MUST start with {translate_tag_in} (first characters, no text before)
3. Your response MUST end with {translate_tag_out} (last characters, no text after)
4. Do NOT add explanations, comments, notes, or greetings

**INCORRECT examples (DO NOT do this):**
❌ "Here is the translation: {translate_tag_in}Text...{translate_tag_out}"
❌ "Text..." (missing tags entirely)

**CORRECT format (ONLY this):**
✅ {translate_tag_in}
{example_format}
{translate_tag_out}
"""


def _build_placeholder_section(tokens: Sequence[str]) -> str:
    """Instructions listing the exact tokens the translation must keep."""
    if not tokens:
        return ""

    token_list = "\n".join(f"- {token}" for token in tokens)
    example = create_placeholder(0, 0)
    return f"""# PLACEHOLDERS (MUST BE PRESERVED)

The text contains placeholders like {example}. Each one stands for content that must not be translated.

**RULES:**
- Copy every placeholder EXACTLY as written, including brackets and the dot
- Each placeholder appears EXACTLY ONCE in your translation
- Move a placeholder only when the target grammar requires it; never drop, split or duplicate it

**Placeholders in this text:**
{token_list}
"""


_MARKUP_SECTION = """# HTML MARKUP

The text is an HTML fragment. Keep every HTML tag and attribute exactly as it is;
translate only the human-readable text between tags. Do not add new tags."""


# ============================================================================
# TRANSLATION PROMPT FUNCTIONS
# ============================================================================

def generate_translation_prompt(
    main_content: str,
    source_language: str = "English",
    target_language: str = "Chinese",
    tokens: Sequence[str] = (),
    translate_tag_in: str = TRANSLATE_TAG_IN,
    translate_tag_out: str = TRANSLATE_TAG_OUT,
    custom_instructions: Optional[str] = None
) -> PromptPair:
    """
    Generate the prompt for translating one content unit.

    Args:
        main_content: Translatable markup of the unit (tokens already substituted)
        source_language: Source language name ("auto" lets the model decide)
        target_language: Target language name
        tokens: Placeholder tokens the translation must carry through
        translate_tag_in: Opening tag for translation output
        translate_tag_out: Closing tag for translation output
        custom_instructions: Optional extra style instructions

    Returns:
        PromptPair: A named tuple with 'system' and 'user' prompts
    """
    if not source_language or source_language.strip().lower() == "auto":
        source_phrase = "the source language"
    else:
        source_phrase = source_language

    output_format_section = _get_output_format_section(
        translate_tag_in, translate_tag_out, INPUT_TAG_IN, INPUT_TAG_OUT
    )
    placeholder_section = _build_placeholder_section(tokens)

    custom_instructions_section = ""
    if custom_instructions and custom_instructions.strip():
        custom_instructions_section = f"""# STYLE INSTRUCTIONS

{custom_instructions.strip()}

"""

    system_prompt = f"""You are a professional {target_language} translator working on web pages.

{custom_instructions_section}# TRANSLATION PRINCIPLES

Translate {source_phrase} to {target_language}. Output only the translation.

- Use natural {target_language} phrasing - never word-for-word
- Keep names, numbers and URLs unchanged
- **WRITE YOUR TRANSLATION IN {target_language.upper()}**

{_MARKUP_SECTION}

{placeholder_section}
{output_format_section}"""

    user_prompt = f"""# TEXT TO TRANSLATE

{INPUT_TAG_IN}
{main_content}
{INPUT_TAG_OUT}

Start with {translate_tag_in} and end with {translate_tag_out}. Nothing before or after.

Provide your translation now:"""

    return PromptPair(system=system_prompt.strip(), user=user_prompt.strip())


def generate_language_detection_prompt(sample_text: str) -> PromptPair:
    """
    Generate the prompt asking which language a page sample is written in.

    The answer is expected as an English language name between LANGUAGE tags,
    e.g. <LANGUAGE>French</LANGUAGE>.
    """
    system_prompt = f"""You identify the language of a text.

Answer with the English name of the language only (e.g. "French", "Japanese").
Your response MUST be exactly: {LANGUAGE_TAG_IN}Language name{LANGUAGE_TAG_OUT}"""

    user_prompt = f"""{INPUT_TAG_IN}
{sample_text}
{INPUT_TAG_OUT}

Which language is this text written in?"""

    return PromptPair(system=system_prompt.strip(), user=user_prompt.strip())
