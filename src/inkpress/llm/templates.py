"""Prompt templates and Markdown content generation.

A template wraps the user's topic in a document outline (business report,
research paper, ...). ``build_prompt`` adds language and formatting
instructions so the model answers in Markdown the renderer understands.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from ..exceptions import ContentSourceError
from .providers import DEFAULT_MAX_TOKENS, LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "english"

SYSTEM_PROMPT = (
    "You are an expert technical writer. You produce complete, well-structured "
    "documents in Markdown and nothing else."
)


@dataclass(frozen=True)
class PromptTemplate:
    name: str
    description: str
    body: str
    theme: Optional[str] = None
    max_tokens: int = DEFAULT_MAX_TOKENS

    @property
    def display_name(self) -> str:
        return " ".join(word.capitalize() for word in self.name.split("-"))

    def apply(self, topic: str) -> str:
        return self.body.replace("{topic}", topic)


# ---------------------------------------------------------------------------
# Built-in templates
# ---------------------------------------------------------------------------

_BUSINESS_REPORT = PromptTemplate(
    name="business-report",
    description="Comprehensive business analysis with market insights and financial projections",
    body="""Generate a comprehensive business report on: "{topic}". Include:
# Executive Summary
## Key Findings
## Recommendations
## Market Analysis
## Financial Projections
## Risk Assessment
## Implementation Timeline
## Conclusion""",
)

_RESEARCH_PAPER = PromptTemplate(
    name="research-paper",
    description="Academic research paper with proper methodology and citations",
    body="""Create an academic research paper on: "{topic}". Structure:
# Abstract
## Introduction
## Literature Review
## Methodology
## Results and Analysis
## Discussion
## Limitations
## Conclusion
## References""",
)

_PROJECT_PROPOSAL = PromptTemplate(
    name="project-proposal",
    description="Detailed project proposal with timeline, budget, and risk assessment",
    body="""Develop a detailed project proposal for: "{topic}". Include:
# Project Overview
## Problem Statement
## Objectives and Goals
## Scope and Deliverables
## Methodology and Approach
## Timeline and Milestones
## Budget Estimation
## Risk Assessment
## Success Metrics
## Team Requirements""",
)

_USER_MANUAL = PromptTemplate(
    name="user-manual",
    description="Complete user documentation with setup, features, and troubleshooting",
    body="""Create a comprehensive user manual for: "{topic}". Structure:
# Introduction
## System Requirements
## Installation and Setup
## Getting Started Guide
## Basic Features and Functions
## Advanced Features
## Configuration Options
## Troubleshooting Guide
## FAQ
## Support and Resources""",
)

_MEETING_AGENDA = PromptTemplate(
    name="meeting-agenda",
    description="Professional meeting agenda with objectives and action items",
    body="""Create a professional meeting agenda for: "{topic}". Include:
# Meeting Information
## Date, Time, and Location
## Attendees and Roles
## Meeting Objectives
## Agenda Items with Time Allocations
## Discussion Points
## Decision Items
## Action Items and Assignments
## Next Steps and Follow-up""",
)

_TRAINING_GUIDE = PromptTemplate(
    name="training-guide",
    description="Educational training material with modules and assessments",
    body="""Develop a comprehensive training guide for: "{topic}". Structure:
# Course Overview
## Learning Objectives
## Prerequisites and Requirements
## Course Structure
## Module 1: Fundamentals and Basics
## Module 2: Intermediate Concepts and Applications
## Module 3: Advanced Topics and Best Practices
## Hands-on Exercises and Labs
## Projects and Practical Applications
## Assessment and Evaluation
## Additional Resources and References
## Certification Path""",
)

_CODING_LEARNING = PromptTemplate(
    name="coding-learning",
    description="Comprehensive programming tutorial with examples, projects, and best practices",
    theme="coding",
    max_tokens=3000,
    body="""Create a detailed programming learning guide for: "{topic}". It should cover:
# {topic} - Complete Learning Guide
## Learning Objectives
- What the reader will be able to do by the end, prerequisites, time commitment
## Introduction and Overview
- What {topic} is, why it matters, real-world use cases
## Environment Setup
- Installation, editor and tooling, package management
## Core Fundamentals
- Syntax, key concepts, data types, control flow
## Essential Features and Functions
- Built-ins, common patterns, error handling, code organisation
## Practical Examples and Code Snippets
- Step-by-step examples with explanations and mini-projects
## Advanced Topics and Techniques
- Performance, design patterns, integration with other technologies
## Hands-on Projects
- Beginner, intermediate and advanced project ideas
## Best Practices and Common Pitfalls
## Additional Resources
## Next Steps and Career Path

Make the guide practical and beginner-friendly while still covering advanced
concepts. Use plenty of code examples with detailed explanations.""",
)

_TEMPLATE_REGISTRY: Mapping[str, PromptTemplate] = MappingProxyType({
    t.name: t
    for t in [
        _BUSINESS_REPORT,
        _RESEARCH_PAPER,
        _PROJECT_PROPOSAL,
        _USER_MANUAL,
        _MEETING_AGENDA,
        _TRAINING_GUIDE,
        _CODING_LEARNING,
    ]
})

CODING_INSTRUCTIONS = """You are creating a comprehensive programming tutorial. Make sure to:
- Include practical code examples with explanations
- Use fenced Markdown code blocks tagged with the language
- Provide step-by-step instructions
- Cover both basic and advanced concepts
- Add real-world examples and use cases
- Keep it suitable for beginners but deep enough for intermediate learners"""

FORMATTING_REQUIREMENTS = """FORMATTING REQUIREMENTS:
- Use proper Markdown formatting throughout
- Use # for main titles, ## for major sections, ### for subsections
- Use **bold** for important terms and concepts
- Use *italic* for emphasis and variable names
- Use bullet points (*) for lists and features
- Use numbered lists (1.) for step-by-step instructions
- Use > for important quotes, tips, or callouts
- Use `inline code` for technical terms and short code snippets
- Use ```language for multi-line code blocks
- Use --- for section breaks when needed
- Make the content comprehensive, well-organized, and professionally written"""


# ---------------------------------------------------------------------------
# Lookup helpers
# ---------------------------------------------------------------------------

def get_template(name: str) -> PromptTemplate:
    """Get a template by name. Raises ``KeyError`` if not found."""
    key = (name or "").lower().strip()
    if key not in _TEMPLATE_REGISTRY:
        available = ", ".join(sorted(_TEMPLATE_REGISTRY.keys()))
        raise KeyError(f"Unknown template '{name}'. Available: {available}")
    return _TEMPLATE_REGISTRY[key]


def list_templates() -> list[PromptTemplate]:
    return list(_TEMPLATE_REGISTRY.values())


def _lookup(name: str | None) -> PromptTemplate | None:
    if not name:
        return None
    try:
        return get_template(name)
    except KeyError:
        logger.warning("Unknown template '%s'; using the topic as the prompt", name)
        return None


def theme_for_template(template: str | None, theme: str) -> str:
    """Theme to render with: templates may force their own theme."""
    tpl = _lookup(template)
    if tpl is not None and tpl.theme:
        return tpl.theme
    return theme


def max_tokens_for_template(template: str | None) -> int:
    tpl = _lookup(template)
    return tpl.max_tokens if tpl is not None else DEFAULT_MAX_TOKENS


def build_prompt(topic: str, template: str | None = None, language: str = DEFAULT_LANGUAGE) -> str:
    """Compose the full prompt sent to the model for *topic*."""
    tpl = _lookup(template)
    parts: list[str] = []
    lang = (language or DEFAULT_LANGUAGE).strip()
    if lang.lower() != DEFAULT_LANGUAGE:
        parts.append(
            f"IMPORTANT: Write the ENTIRE response in {lang}. "
            f"All headings, content, and explanations must be in {lang}."
        )
    if tpl is not None and tpl.name == _CODING_LEARNING.name:
        parts.append(CODING_INSTRUCTIONS)
    parts.append(tpl.apply(topic) if tpl is not None else topic)
    parts.append(FORMATTING_REQUIREMENTS)
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class ContentGenerator:
    """Turns a topic into a Markdown document using an LLM provider."""

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    def generate(self, topic: str, template: str | None = None, language: str = DEFAULT_LANGUAGE) -> str:
        if not topic or not topic.strip():
            raise ContentSourceError("A non-empty topic is required")
        prompt = build_prompt(topic.strip(), template, language)
        logger.info(
            "Generating content via %s (%s), template=%s",
            self.provider.provider_name, self.provider.model, template or "none",
        )
        text = self.provider.chat(
            SYSTEM_PROMPT, prompt, max_tokens=max_tokens_for_template(template),
        )
        if not text or not text.strip():
            raise ContentSourceError("The model returned no text")
        return text
