"""Render AI Gherkin analyses into ``.feature`` files."""

from __future__ import annotations

import re
from typing import List

from .ai_schemas import AIGherkinAnalysis, AIGherkinScenario, AIGherkinStep


def gherkin_file_name(task_id: str, feature_title: str) -> str:
    """``task_03`` and ``User Login`` give ``03_user_login.feature``."""
    number = task_id.replace("task_", "")
    title = re.sub(r"\s+", "_", feature_title.lower())
    return f"{number}_{title}.feature"


def _step(step: AIGherkinStep, indent: str) -> str:
    return f"{indent}{step.type.capitalize()} {step.text}"


def _scenario_lines(scenario: AIGherkinScenario, indent: str) -> List[str]:
    lines = []
    if scenario.tags:
        lines.append(indent + " ".join(f"@{tag}" for tag in scenario.tags))
    lines.append(f"{indent}Scenario: {scenario.title}")
    if scenario.description:
        lines.append(f"{indent}  {scenario.description}")
    lines += [_step(step, indent + "  ") for step in scenario.steps]

    if scenario.examples:
        lines += ["", f"{indent}  Examples:"]
        for example in scenario.examples:
            lines.append(f"{indent}    | {example.description} |")
            lines += [f"{indent}    | {key} | {value} |" for key, value in example.data.items()]
    return lines


def format_gherkin_from_analysis(analysis: AIGherkinAnalysis) -> str:
    feature = analysis.feature
    lines = [f"Feature: {feature.title}"]
    if feature.description:
        lines.append(f"  {feature.description}")
    lines.append("")

    if feature.background:
        lines.append("  Background:")
        lines += [_step(step, "    ") for step in feature.background]
        lines.append("")

    for index, scenario in enumerate(feature.scenarios):
        if index:
            lines.append("")
        lines += _scenario_lines(scenario, "  ")

    for rule in feature.rules or []:
        lines += ["", f"  Rule: {rule.title}"]
        for index, scenario in enumerate(rule.scenarios):
            if index:
                lines.append("")
            lines += _scenario_lines(scenario, "    ")

    if feature.testing_notes:
        lines += ["", "", "# Testing Notes:"]
        lines += [f"# {note}" for note in feature.testing_notes.splitlines()]

    return "\n".join(lines) + "\n"


def scenario_count(analysis: AIGherkinAnalysis) -> int:
    """Scenarios in the feature, rule scenarios included."""
    feature = analysis.feature
    return len(feature.scenarios) + sum(len(rule.scenarios) for rule in feature.rules or [])
