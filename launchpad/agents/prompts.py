"""
Prompt templates for every generation sub-task.

Builders take plain dicts straight from a job's input_data and return
the user prompt; the matching system prompts are module constants.
"""

from typing import Any, Dict, List, Optional


def language_suffix(language: Optional[str]) -> str:
    if not language or language == "English":
        return ""
    return f"""
---
OUTPUT LANGUAGE: {language}
All content must be written entirely in {language}.
Do not include any English unless the user's language is English.
"""


def _join(items: Optional[List[str]], default: str = "Not specified") -> str:
    return ", ".join(items or []) or default


# =============================================================================
# Outlined content (lead magnets and funnel products)
# =============================================================================

OUTLINE_SYSTEM_PROMPT = """Generate a content outline. Return ONLY valid JSON with this structure:
{
  "title": "Product Title",
  "subtitle": "Subtitle",
  "chapters": [
    { "type": "cover", "title": "Cover" },
    { "type": "introduction", "title": "Introduction Title" },
    { "type": "chapter", "number": 1, "title": "Chapter 1 Title" },
    { "type": "chapter", "number": 2, "title": "Chapter 2 Title" },
    { "type": "bridge", "title": "What's Next" },
    { "type": "cta", "title": "Call to Action" }
  ]
}"""

SECTION_SYSTEM_PROMPT = """You are a content writer creating a single chapter/section of a digital product.
Write engaging, actionable content. Output ONLY valid JSON with this structure:
{
  "type": "chapter|introduction|bridge|cta|cover",
  "number": 1,
  "title": "Chapter Title",
  "content": "Full chapter content (200-400 words for chapters, shorter for intro/bridge/cta)"
}"""

PROMOTION_KIT_SYSTEM_PROMPT = "Generate a social media promotion kit. Return ONLY valid JSON."


def previous_sections_context(sections: List[Dict[str, Any]]) -> str:
    """First 200 characters of each earlier section, one per line."""
    return "\n".join(
        f"{s.get('title', '')}: {(s.get('content') or '')[:200]}..."
        for s in sections
    )


def lead_magnet_outline_prompt(
    lead_magnet: Dict[str, Any],
    profile: Dict[str, Any],
    front_end_product: Dict[str, Any],
    language: Optional[str] = None,
) -> str:
    return f"""
Create a lead magnet content outline:
Title: {lead_magnet.get('title')}
Format: {lead_magnet.get('format')}
Topic: {lead_magnet.get('topic')}
Keyword: {lead_magnet.get('keyword')}

Creator: {profile.get('name')}
Leads to: {front_end_product.get('name')} (${front_end_product.get('price')})

Structure:
- Cover
- 5-6 value chapters (200-300 words each)
- Bridge chapter (creates desire for front-end)
- CTA

Output JSON outline with chapters array.
{language_suffix(language)}"""


def lead_magnet_section_prompt(
    section: Dict[str, Any],
    lead_magnet: Dict[str, Any],
    profile: Dict[str, Any],
    front_end_product: Dict[str, Any],
    audience: Optional[Dict[str, Any]],
    previous: List[Dict[str, Any]],
    language: Optional[str] = None,
) -> str:
    audience_line = f"Audience: {audience.get('name')}" if audience else ""
    number_line = f"Chapter number: {section['number']}" if section.get("number") else ""
    context = previous_sections_context(previous)
    context_block = f"Previous sections:\n{context}" if context else ""

    return f"""
Write the "{section.get('title')}" section for lead magnet "{lead_magnet.get('title')}".

Lead Magnet: {lead_magnet.get('title')}
Topic: {lead_magnet.get('topic')}
Keyword: {lead_magnet.get('keyword')}
Creator: {profile.get('name')}
{audience_line}

This should create desire for: {front_end_product.get('name')} (${front_end_product.get('price')})

Section type: {section.get('type', 'chapter')}
{number_line}

{context_block}

Write 200-300 words of valuable, actionable content.
{language_suffix(language)}"""


def product_outline_prompt(
    product: Dict[str, Any],
    profile: Dict[str, Any],
    audience: Optional[Dict[str, Any]],
    language: Optional[str] = None,
) -> str:
    audience_name = (audience or {}).get("name") or "General"
    return f"""
Create a content outline for this product:
Name: {product.get('name')}
Format: {product.get('format')}
Price: ${product.get('price')}
Description: {product.get('description')}

Creator: {profile.get('name')} ({profile.get('business_name') or profile.get('name')})
Audience: {audience_name}

Guidelines:
- Front-End ($7-17): 8-15 pages total (5-8 chapters)
- Bump ($7-17): 3-5 pages total (3-4 chapters)
- Upsells ($27-97+): 10-20 pages total (8-12 chapters)

Based on the price (${product.get('price')}), create an appropriate outline.
{language_suffix(language)}"""


def product_section_prompt(
    section: Dict[str, Any],
    product: Dict[str, Any],
    profile: Dict[str, Any],
    audience: Optional[Dict[str, Any]],
    next_product: Optional[Dict[str, Any]],
    previous: List[Dict[str, Any]],
    language: Optional[str] = None,
) -> str:
    audience_line = f"Audience: {audience.get('name')}" if audience else ""
    next_line = (
        f"This should naturally lead to: {next_product.get('name')}" if next_product else ""
    )
    number_line = f"Chapter number: {section['number']}" if section.get("number") else ""
    context = previous_sections_context(previous)
    context_block = f"Previous sections (for context):\n{context}" if context else ""

    return f"""
Write the "{section.get('title')}" section for "{product.get('name')}".

Product: {product.get('name')} - {product.get('description')}
Creator: {profile.get('name')}
{audience_line}
{next_line}

Section type: {section.get('type', 'chapter')}
{number_line}

{context_block}

Write 200-400 words of engaging, actionable content.
{language_suffix(language)}"""


def promotion_kit_prompt(lead_magnet: Dict[str, Any], language: Optional[str] = None) -> str:
    keyword = lead_magnet.get("keyword")
    return f"""
Create a promotion kit for lead magnet "{lead_magnet.get('title')}" with keyword "{keyword}".

Return JSON:
{{
  "video_script": {{
    "hook": "Opening line",
    "value": "Key points",
    "cta": "Comment {keyword} below!"
  }},
  "captions": {{
    "comment_version": "Caption ending with 'comment {keyword} below'",
    "dm_version": "Caption ending with 'DM me {keyword}'"
  }},
  "keyword": "{keyword}"
}}
{language_suffix(language)}"""


# =============================================================================
# Funnel architecture
# =============================================================================

FUNNEL_SYSTEM_PROMPT = """You are an elite funnel architect. Create product funnels from proven PDF formats.

## PDF-ONLY PRODUCTS (MANDATORY)
Every product must be a PDF deliverable: multi-page guide, checklist, cheat sheet,
swipe file, blueprint, or workbook. Never suggest video courses, masterclasses,
workshops, or anything measured in hours.

## ANTI-CANNIBALIZATION
- Front-End ($7-17): solves ONE immediate need partially.
- Bump ($7-17): makes the front-end faster or easier to implement.
- Upsell 1 ($27-47): goes deeper into implementation.
- Upsell 2 ($47-97): done-for-you templates, scripts, and assets.
Each product creates desire for the next. The user's existing product is the final destination.

## NAMING FORMULA
[SPECIFIC NUMBER] + [FORMAT] + [DESIRED OUTCOME], with realistic numbers (7, 12, 15, 21, 27, 30).

## RULES
1. Never suggest page counts over 25 pages
2. Only 4 products: front_end, bump, upsell_1, upsell_2
3. ONLY output JSON, no other text"""


def funnel_prompt(
    profile: Dict[str, Any],
    audience: Optional[Dict[str, Any]],
    existing_product: Optional[Dict[str, Any]],
    language: Optional[str] = None,
) -> str:
    audience = audience or {}
    if existing_product:
        existing_block = f"""## EXISTING PRODUCT (This is the FINAL destination - Upsell 2 bridges to this)
Name: {existing_product.get('name')}
Price: ${existing_product.get('price')}
Description: {existing_product.get('description') or 'Not specified'}

IMPORTANT: Upsell 2 should create desire for this existing product as the ultimate solution."""
    else:
        existing_block = "## No existing product - create complete standalone funnel"

    return f"""
Create a complete product funnel:

## PROFILE
Name: {profile.get('name')}
Business: {profile.get('business_name') or 'Not specified'}
Niche: {profile.get('niche') or 'Not specified'}
Vibe: {profile.get('vibe') or 'Professional'}

## AUDIENCE
Name: {audience.get('name') or 'General'}
Pain Points: {_join(audience.get('pain_points'))}
Desires: {_join(audience.get('desires'))}

{existing_block}

Return JSON with: funnel_name, front_end, bump, upsell_1, upsell_2
Each product needs: name, format, price, description, bridges_to
{language_suffix(language)}"""


# =============================================================================
# Lead magnet ideas
# =============================================================================

IDEAS_SYSTEM_PROMPT = """You are an elite lead magnet strategist.

## CORE PHILOSOPHY: SMALL = FAST RESULTS
Lead magnets must be 1-5 pages, 3-7 steps or items, consumable in 5-10 minutes.
Strategy/system, checklist, and cheat sheet formats perform best.

## OUTPUT FORMAT
Return ONLY valid JSON:
{
  "ideas": [
    {
      "title": "Short title with SMALL number (1, 3, 5, 7)",
      "format": "One of the allowed PDF formats",
      "topic": "Brief topic description",
      "keyword": "MEMORABLE_KEYWORD",
      "why_it_works": "Data-backed reasoning",
      "bridges_to_product": "How this leads to target product"
    }
  ]
}

## RULES
1. All 3 ideas must be DIFFERENT approaches
2. Numbers should be SMALL (1, 3, 5, 7)
3. ONLY output JSON, no other text"""


def knowledge_query(profile: Dict[str, Any], audience: Optional[Dict[str, Any]]) -> str:
    return f"{profile.get('niche') or ''} {(audience or {}).get('name') or ''} lead magnet topics".strip()


def knowledge_context_block(chunks: List[Dict[str, Any]]) -> str:
    if not chunks:
        return ""
    numbered = "\n\n".join(f"[{i + 1}] {c.get('content', '')}" for i, c in enumerate(chunks))
    return (
        "\n## KNOWLEDGE\n"
        "=== CREATOR'S KNOWLEDGE & TEACHING STYLE ===\n"
        f"{numbered}\n"
        "=== END KNOWLEDGE ===\n\n"
        "Use the above to match the creator's voice, terminology, and proven strategies.\n"
    )


def ideas_prompt(
    profile: Dict[str, Any],
    audience: Optional[Dict[str, Any]],
    front_end_product: Dict[str, Any],
    excluded_topics: Optional[List[str]],
    knowledge_chunks: Optional[List[Dict[str, Any]]] = None,
    language: Optional[str] = None,
) -> str:
    if audience:
        audience_block = f"""Name: {audience.get('name')}
Pain Points: {_join(audience.get('pain_points'))}
Desires: {_join(audience.get('desires'))}"""
    else:
        audience_block = "General audience"

    return f"""
Generate 3 lead magnet ideas:

## PROFILE
Name: {profile.get('name')}
Niche: {profile.get('niche') or 'Not specified'}

## AUDIENCE
{audience_block}

## TARGET PRODUCT (Lead magnet creates desire for this)
Name: {front_end_product.get('name')}
Price: ${front_end_product.get('price')}
Description: {front_end_product.get('description') or 'Not specified'}

## EXCLUDED TOPICS (Do NOT suggest these)
{_join(excluded_topics, 'None')}
{knowledge_context_block(knowledge_chunks or [])}
Remember:
- PDF ONLY formats (no video, no courses, no "hours")
- Use the specificity formula with numbers
- Each idea bridges to the target product
{language_suffix(language)}"""


# =============================================================================
# Supplementary documents
# =============================================================================

TLDR_SYSTEM_PROMPT = (
    "You are a marketing copywriter. Create concise, compelling TLDR summaries "
    "that help customers quickly understand product value. Be specific and "
    "benefit-focused. Return ONLY valid JSON."
)

CROSS_PROMO_SYSTEM_PROMPT = (
    "You are a conversion copywriter specializing in natural, non-pushy "
    "cross-promotions. Write promotional copy that feels like a helpful "
    "recommendation from a friend, not a sales pitch. Output only the "
    "promotional paragraph text, no JSON."
)


def tldr_prompt(product: Dict[str, Any], language: Optional[str] = None) -> str:
    return f"""
Create a TLDR summary for this product:

Product Name: {product.get('name')}
Description: {product.get('description') or 'Not provided'}
Format: {product.get('format')}
Price: ${product.get('price')}

Return ONLY valid JSON with this exact structure:
{{
  "what_it_is": "One clear sentence describing what this product is",
  "who_its_for": "One sentence describing the ideal customer",
  "problem_solved": "One sentence about the main problem it solves",
  "whats_inside": ["Item 1", "Item 2", "Item 3", "Item 4", "Item 5"],
  "key_benefits": ["Benefit 1", "Benefit 2", "Benefit 3"],
  "cta": "A compelling call to action"
}}
{language_suffix(language)}"""


def cross_promo_prompt(
    product: Dict[str, Any],
    existing_product: Dict[str, Any],
    profile: Dict[str, Any],
    language: Optional[str] = None,
) -> str:
    return f"""
Write a cross-promotion paragraph for the end of a product:

CURRENT PRODUCT:
Name: {product.get('name')}
Price: ${product.get('price')}

DESTINATION PRODUCT (what we're promoting):
Name: {existing_product.get('name')}
Price: ${existing_product.get('price')}
Description: {existing_product.get('description') or 'Premium offering'}

CREATOR: {profile.get('name')}

Write a 150-200 word promotional paragraph that:
1. Acknowledges the value they just got from the current product
2. Creates curiosity about the destination product
3. Positions the destination product as the next logical step
4. Includes a soft CTA (no aggressive sales language)

Keep it conversational and authentic to the creator's voice.
Do NOT include the destination product URL - that will be added separately.
{language_suffix(language)}"""


# =============================================================================
# Email sequences
# =============================================================================

EMAIL_SYSTEM_PROMPT = """You are an elite email copywriter trained in the Maria Wendt style.

## EMAIL CHARACTERISTICS
1. **Conversational Tone**: Write like talking to a friend over coffee
2. **Short Paragraphs**: 1-3 sentences max per paragraph
3. **Curiosity Gaps**: Create intrigue without revealing everything
4. **Soft Selling**: Value-first approach, CTA feels natural
5. **Relatable Stories**: Use quick anecdotes and examples
6. **Emotional Connection**: Tap into desires and frustrations
7. **Scannable Format**: Easy to read on mobile

## EMAIL STRUCTURE
- Subject Line: 6-10 words, curiosity or benefit-driven
- Preview Text: 40-60 characters, complements subject
- Body: 150-250 words
- Single CTA: Clear, benefit-focused

## WHAT TO AVOID
- Long paragraphs
- Corporate/formal language
- Multiple CTAs
- Hard selling
- Fake urgency

Return ONLY valid JSON with the requested structure."""

EMAILS_PER_SEQUENCE = 3

# (purpose, subject style) for each email, by sequence type
EMAIL_PLANS: Dict[str, List[tuple]] = {
    "lead_magnet": [
        ("Welcome subscriber, deliver immediate value, introduce the lead magnet", "curiosity-driven"),
        ("Share a relatable story, provide more value, build connection", "story-driven"),
        ("Create desire for the paid product, soft CTA", "benefit-driven"),
    ],
    "front_end": [
        ("Agitate the problem the product solves, create awareness", "problem-focused"),
        ("Introduce the solution, share benefits without hard selling", "solution-focused"),
        ("Final pitch with soft CTA, include transformation/benefit", "transformation-focused"),
    ],
}


def email_prompt(
    sequence_type: str,
    number: int,
    funnel: Dict[str, Any],
    profile: Dict[str, Any],
    language: Optional[str] = None,
) -> str:
    purpose, subject_style = EMAIL_PLANS[sequence_type][number - 1]
    creator = profile.get("name") or "Creator"
    if number == 1:
        creator = f"{creator} ({profile.get('business_name') or creator})"
    front_end = funnel.get("front_end") or {}

    if sequence_type == "lead_magnet":
        lead_magnet = funnel.get("lead_magnet") or {}
        details = (
            f"LEAD MAGNET: {lead_magnet.get('name') or 'Free Resource'}\n"
            f"KEYWORD: {lead_magnet.get('keyword') or 'FREEBIE'}"
        )
        if number == EMAILS_PER_SEQUENCE:
            details += (
                f"\nFRONT-END PRODUCT: {front_end.get('name') or 'Next Level Product'}"
                f" (${front_end.get('price') or 17})"
            )
        label = "lead magnet"
    else:
        details = (
            f"PRODUCT: {front_end.get('name') or 'Paid Product'} (${front_end.get('price') or 17})\n"
            f"DESCRIPTION: {front_end.get('description') or 'valuable resource'}"
        )
        label = "front-end product"

    body_hint = "150-250 words"
    if number == EMAILS_PER_SEQUENCE:
        body_hint += " with a soft CTA"

    return f"""
Write Email {number} of a {EMAILS_PER_SEQUENCE}-email {label} sequence.

{details}
CREATOR: {creator}

PURPOSE: {purpose}

Return JSON:
{{
  "subject": "Subject line ({subject_style})",
  "preview": "Preview text (40-60 chars)",
  "body": "Email body ({body_hint})"
}}
{language_suffix(language)}"""
