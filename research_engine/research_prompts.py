"""
Prompt templates used by each research phase.

Every template embeds excerpts of earlier model output.  The excerpts are
hard character slices bounded by the caps below; they keep token usage and
cost predictable and carry no meaning beyond that.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

# Excerpt caps, in characters, per embedding site.
ANALYSIS_IN_PERSPECTIVES_CAP: int = 2000
INITIAL_IN_CRITICAL_CAP: int = 2500
INITIAL_IN_GAPS_CAP: int = 1500
CRITICAL_IN_GAPS_CAP: int = 1500
INITIAL_IN_SYNTHESIS_CAP: int = 1500
CRITICAL_IN_SYNTHESIS_CAP: int = 1000
GAPS_IN_SYNTHESIS_CAP: int = 1000
GLOBAL_SUMMARY_CAP: int = 6000
PERSPECTIVE_SNIPPET_CAP: int = 800

NO_RESULTS_NOTE: str = (
    "No detailed per-perspective results available; synthesize based on topic-level reasoning only."
)


def build_user_prompt(base: str, sections: Optional[Iterable[str]] = None) -> str:
    """Join the base instruction and its sections, separated by blank lines."""

    return "\n\n".join([base, *(sections or [])])


def excerpt(text: Optional[str], cap: int) -> str:
    """Return at most `cap` leading characters of `text`."""

    return (text or "")[:cap]


def truncate_for_log(message: Optional[str], max_len: int = 120) -> str:
    if not message:
        return ""
    return message[: max_len - 3] + "..." if len(message) > max_len else message


def constraint_suffix(constraints: str) -> str:
    if not constraints:
        return ""
    return f"\n\nAdditionally, respect these constraints / addons:\n{constraints}"


def topic_analysis_prompt(topic: str) -> str:
    return build_user_prompt(
        f'Perform a comprehensive analysis of the research topic: "{topic}"',
        [
            "Provide:",
            "1. TopicCQ: complexity assessment (scale 1-10) with justification.",
            "2. Key subtopics and core questions.",
            "3. Suitable methodologies and evidence types.",
            "4. Critical uncertainties and assumptions.",
            "5. Interdisciplinary links worth exploring.",
            "6. Current research gaps & data limitations.",
            "",
            "Be structured, concise, and decision-useful.",
        ],
    )


def perspective_generation_prompt(topic: str, analysis: str, iterations: int) -> str:
    return build_user_prompt(
        f'Based on the topic "{topic}" and the following analysis (if any):\n'
        f"{excerpt(analysis, ANALYSIS_IN_PERSPECTIVES_CAP)}",
        [
            f"Generate between {iterations + 2} and {iterations * 3} distinct, high-quality research perspectives.",
            "Each perspective must be:",
            "- Clearly named (start with a bold title).",
            "- Methodologically sound and academically relevant.",
            "- Non-overlapping and genuinely distinct.",
            "- Capable of yielding substantial insight.",
            "",
            'Return as a numbered list: "1. Title: short rationale".',
        ],
    )


def initial_research_prompt(perspective: str, constraints: str = "") -> str:
    return build_user_prompt(
        f'Conduct a thorough investigation into this research perspective:\n"{perspective}"'
        f"{constraint_suffix(constraints)}",
        [
            "Requirements:",
            "- Outline key theories, models, and frameworks.",
            "- Summarize major findings and representative studies.",
            "- Include concrete examples and (approximate) citations where appropriate.",
            "- Identify important datasets, benchmarks, or empirical evidence.",
            "- Highlight leading researchers, institutions, and recent developments (last 2-3 years).",
            "- Note practical applications, where relevant.",
            "- Avoid vague statements; prefer specific details.",
        ],
    )


def critical_analysis_prompt(perspective: str, initial_research: str) -> str:
    return build_user_prompt(
        f'Critically evaluate the following research overview for "{perspective}":\n'
        f"{excerpt(initial_research, INITIAL_IN_CRITICAL_CAP)}",
        [
            "Provide:",
            "1. Strengths and weaknesses of the arguments and evidence.",
            "2. Evaluation of methodological quality and limitations.",
            "3. Biases and threats to validity.",
            "4. Comparison with mainstream / consensus views where applicable.",
            "5. Reproducibility and robustness considerations.",
        ],
    )


def gap_analysis_prompt(perspective: str, initial_research: str, critical_analysis: str) -> str:
    return build_user_prompt(
        f'Using the perspective "{perspective}", the research overview, and its critical evaluation:',
        [
            f"Research overview:\n{excerpt(initial_research, INITIAL_IN_GAPS_CAP)}...",
            f"Critical analysis:\n{excerpt(critical_analysis, CRITICAL_IN_GAPS_CAP)}...",
            "",
            "Identify:",
            "1. Concrete research gaps and unanswered questions.",
            "2. Opportunities for novel contributions (theoretical & applied).",
            "3. Methodological improvements or new study designs.",
            "4. Practical & policy implications.",
            "5. Interdisciplinary collaboration opportunities.",
            "Be specific and actionable. Structure points clearly.",
        ],
    )


def perspective_synthesis_prompt(
    perspective: str,
    initial_research: str,
    critical_analysis: str,
    identified_gaps: str,
) -> str:
    return build_user_prompt(
        f'Synthesize a cohesive view for the perspective "{perspective}".',
        [
            "Base your synthesis on:",
            f"- Research overview: {excerpt(initial_research, INITIAL_IN_SYNTHESIS_CAP)}...",
            f"- Critical analysis: {excerpt(critical_analysis, CRITICAL_IN_SYNTHESIS_CAP)}...",
            f"- Gaps & opportunities: {excerpt(identified_gaps, GAPS_IN_SYNTHESIS_CAP)}...",
            "",
            "Provide:",
            "1. Integrated narrative with key insights.",
            "2. Assessment of current evidence quality.",
            "3. Priority list of research directions (High/Medium/Low).",
            "4. Suggested methodologies & datasets for top priorities.",
            "5. Practical applications and expected impact.",
            "Make it clear, structured, and non-redundant.",
        ],
    )


def research_summary(topic: str, findings: Sequence[tuple]) -> str:
    """Render the cross-perspective summary fed to the global synthesis.

    `findings` is an ordered sequence of `(perspective, snippet, error)`
    tuples; the snippet is capped per perspective.
    """

    summary = f"Topic: {topic}\n\n"
    if not findings:
        return summary + NO_RESULTS_NOTE + "\n"
    for index, (perspective, snippet, error) in enumerate(findings, start=1):
        summary += f"Perspective {index}: {perspective}\n"
        snippet = excerpt(snippet, PERSPECTIVE_SNIPPET_CAP)
        if snippet:
            summary += f"Key findings snippet: {snippet}\n\n"
        elif error:
            summary += f"Error for this perspective: {error}\n\n"
    return summary


def global_synthesis_prompt(topic: str, summary: str) -> str:
    prompt = build_user_prompt(
        f"Synthesize comprehensive research findings from multiple perspectives on: {topic}",
        [
            "Create a detailed research report that includes:",
            "1. Executive summary of key findings (max ~300 words).",
            "2. Integrated analysis across all perspectives and themes.",
            "3. Critical insights and emerging patterns.",
            "4. Overall research quality assessment and confidence levels.",
            "5. Consolidated gap analysis with prioritized opportunities.",
            "6. Concrete recommendations for future research (methods, timelines, resources).",
            "7. Practical applications, implementation strategies, and expected impact.",
            "8. Limitations of this synthesis (including relying on model-generated text).",
            "",
            "Write as a structured, clearly formatted report.",
        ],
    )
    return f"{prompt}\n\nContextual research summary:\n{excerpt(summary, GLOBAL_SUMMARY_CAP)}"
