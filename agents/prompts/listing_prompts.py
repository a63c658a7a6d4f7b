# =============================================================================
# agents/prompts/listing_prompts.py - Amazon Listing Optimizer Prompts
# =============================================================================
# Built-in prompt templates for the four listing steps. Templates use
# string.Template placeholders ($product_name, $reviews_insight, ...) so
# admins can override them through agent_prompts without worrying about
# braces in the text.
#
# Usage:
#   prompt = build_step_prompt(2, session_row)
#   prompt = build_step_prompt(2, session_row, template=override_text)
# =============================================================================

from __future__ import annotations

from string import Template
from typing import Any

# =============================================================================
# System Prompt
# =============================================================================

LISTING_SYSTEM_PROMPT = """
<role>
You are an Amazon marketplace copywriter specialised in the Brazilian market.
You write listings that rank for the seller's keywords and convert shoppers.
</role>

<rules>
- Answer in Brazilian Portuguese unless the product data is in another language.
- Never invent certifications, warranties or technical specs that were not provided.
- Use the customer's own words from the reviews when they describe a need.
- Return plain text. No HTML, no markdown tables.
</rules>
""".strip()


# =============================================================================
# Step 1 - Reviews Analysis
# =============================================================================

REVIEWS_ANALYSIS_PROMPT = """
<task>
Below is a batch of reviews from competitors selling similar products.
Aggregate and analyse all reviews together.
</task>

<part_1>
Focus the analysis on:
01 - Features customers want
02 - Recurring problems and pain points from negative reviews
03 - The natural language customers use to describe their needs
04 - How my listing should highlight those features and solutions
</part_1>

<part_2>
Using the analysis and the full reviews, answer each question in detail:
1. Which interesting insights emerge from the data? (positive and negative)
2. What are the 5 main pain points, ordered by frequency and severity?
3. What are the 7 main benefits customers highlight, ordered by relevance?
4. For which events or occasions are these products bought?
5. If you had to design THE BEST product on the planet, which key features would it have and why?
6. Which packaging would you recommend and why?
7. Which material would you recommend and why?
8. Which small, light extras (physical or digital) could surprise the customer?
9. Is there any unusual data point or trend in the reviews I should know about?
10. Which important questions am I probably not asking?
</part_2>

<reviews>
$reviews_data
</reviews>
""".strip()


# =============================================================================
# Step 2 - Titles
# =============================================================================

TITLES_PROMPT = """
<product>
Product name: $product_name
Brand: $brand
Category: $category
Keywords: $keywords
Long tail keywords: $long_tail_keywords
Main features: $main_features
Target audience: $target_audience
</product>

<reviews_insight>
$reviews_insight
</reviews_insight>

<task>
You are an expert in Amazon titles with high CTR and conversion.
Write 5 different title options that:
01 - Are between 150 and 200 characters long
02 - Follow the structure [Main Product] + [Keywords] + [Key Features] + [Brand]
03 - Use the keywords organically, without forcing them
Use long tail keywords and features where they matter.
Return exactly 5 titles numbered 1 to 5.
</task>
""".strip()


# =============================================================================
# Step 3 - Bullet Points
# =============================================================================

BULLET_POINTS_PROMPT = """
<product>
Product name: $product_name
Brand: $brand
Keywords: $keywords
Main features: $main_features
Target audience: $target_audience
</product>

<reviews_insight>
$reviews_insight
</reviews_insight>

<titles>
$titles
</titles>

<task>
Write 5 bullet points for this listing.
- Start each bullet with a short benefit in CAPITAL LETTERS followed by a colon.
- Each bullet has at most 250 characters.
- Answer the top pain points found in the reviews analysis.
- Spread the keywords across the bullets without repeating the title verbatim.
Return the 5 bullets, one per line, each starting with "- ".
</task>
""".strip()


# =============================================================================
# Step 4 - Description
# =============================================================================

DESCRIPTION_PROMPT = """
<product>
Product name: $product_name
Brand: $brand
Category: $category
Keywords: $keywords
Long tail keywords: $long_tail_keywords
Target audience: $target_audience
</product>

<titles>
$titles
</titles>

<bullet_points>
$bullet_points
</bullet_points>

<task>
Write the product description (up to 2000 characters).
- Open with the main benefit and the occasion the product is bought for.
- Tell how the product solves the pain points from the reviews.
- Close with what comes in the box and a call to action.
- Use short paragraphs separated by blank lines.
</task>
""".strip()


STEP_PROMPTS: dict[int, str] = {
    1: REVIEWS_ANALYSIS_PROMPT,
    2: TITLES_PROMPT,
    3: BULLET_POINTS_PROMPT,
    4: DESCRIPTION_PROMPT,
}

# prompt_type values admins use in agent_prompts to override a step
STEP_PROMPT_TYPES: dict[int, str] = {
    1: "reviews_analysis",
    2: "titles",
    3: "bullet_points",
    4: "description",
}

PROMPT_FIELDS = (
    "product_name",
    "brand",
    "category",
    "keywords",
    "long_tail_keywords",
    "main_features",
    "target_audience",
    "reviews_data",
    "reviews_insight",
    "titles",
    "bullet_points",
)


def build_step_prompt(step: int, session: dict[str, Any], template: str | None = None) -> str:
    """
    Render the user prompt for a listing step.

    Args:
        step: Step number (1-4)
        session: Listing session row
        template: Optional override; defaults to the built-in template

    Returns:
        Prompt text with every placeholder filled ("N/A" for empty fields)

    Raises:
        KeyError: If step is not 1-4
    """
    text = template if template is not None else STEP_PROMPTS[step]
    values = {field: (session.get(field) or "N/A") for field in PROMPT_FIELDS}
    return Template(text).safe_substitute(values)
