"""
Token usage and cost tracking for LLM calls.

A TokenMonitor is created per run and handed to the LLM client as its
usage hook. It only observes; nothing in the pipeline reads it to make
decisions.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, asdict, field
from datetime import datetime
from typing import List, Dict, Any

HISTORY_LIMIT = 100
PROMPT_PREVIEW_CHARS = 100

EXPENSIVE_MODELS = ("gpt-4", "gpt-4o")
CHEAP_MODELS = ("gpt-4o-mini", "gpt-3.5-turbo")


@dataclass(frozen=True)
class UsageRecord:
    model: str
    prompt_tokens: int
    completion_tokens: int
    cost: float
    prompt_preview: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        data["total_tokens"] = self.total_tokens
        return data


def preview_prompt(prompt: str) -> str:
    if len(prompt) > PROMPT_PREVIEW_CHARS:
        return prompt[:PROMPT_PREVIEW_CHARS] + "..."
    return prompt


class TokenMonitor:
    """Accumulates UsageRecords for one pipeline run."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.reset()

    def reset(self) -> None:
        self.total_calls = 0
        self.total_tokens = 0
        self.total_cost = 0.0
        self.history: List[UsageRecord] = []

    def record(self, usage: UsageRecord) -> None:
        """Usage hook: call once per successful LLM completion."""
        self.total_calls += 1
        self.total_tokens += usage.total_tokens
        self.total_cost += usage.cost
        self.history.append(usage)
        if len(self.history) > HISTORY_LIMIT:
            self.history = self.history[-HISTORY_LIMIT:]

        if self.verbose:
            print(f"    LLM call [{usage.model}]: {usage.prompt_tokens:,} input + {usage.completion_tokens:,} output tokens, ${usage.cost:.6f}")

    @property
    def average_tokens_per_call(self) -> float:
        if self.total_calls == 0:
            return 0.0
        return self.total_tokens / self.total_calls

    def stats(self) -> Dict[str, Any]:
        return {
            "total_calls": self.total_calls,
            "total_tokens": self.total_tokens,
            "total_cost": self.total_cost,
            "average_tokens_per_call": self.average_tokens_per_call,
            "call_history": [r.to_dict() for r in self.history],
        }

    def export_json(self) -> str:
        return json.dumps(self.stats(), indent=2, ensure_ascii=False)

    def report(self) -> str:
        """Human-readable summary with the five most recent calls."""
        if self.total_calls == 0:
            return "Token usage: no LLM calls recorded"

        lines = [
            "Token Usage Report",
            "=" * 50,
            f"Total calls: {self.total_calls}",
            f"Total tokens: {self.total_tokens:,}",
            f"Total cost: ${self.total_cost:.4f}",
            f"Average per call: {round(self.average_tokens_per_call)} tokens",
            "",
            "Recent calls:",
            "---",
        ]
        for i, call in enumerate(reversed(self.history[-5:]), start=1):
            lines.append(f"{i}. [{call.timestamp.strftime('%H:%M:%S')}] {call.model}")
            lines.append(f"   Tokens: {call.prompt_tokens}+{call.completion_tokens}={call.total_tokens}")
            lines.append(f"   Cost: ${call.cost:.6f}")
            lines.append(f"   Prompt: {call.prompt_preview}")
            lines.append("")
        return "\n".join(lines)

    def efficiency_analysis(self) -> Dict[str, Any]:
        recommendations: List[str] = []
        warnings: List[str] = []
        efficiency = "good"

        if self.total_calls == 0:
            return {
                "efficiency": "no data",
                "recommendations": ["Analysis becomes available after the first LLM call"],
                "warnings": [],
            }

        avg_tokens = self.average_tokens_per_call
        if avg_tokens > 8000:
            efficiency = "needs optimisation"
            warnings.append("Average tokens per call is very high, consider shorter prompts")
            recommendations.append("Split long transcripts into smaller segments")
            recommendations.append("Use a cheaper model such as gpt-4o-mini for simple tasks")
        elif avg_tokens > 4000:
            efficiency = "fair"
            recommendations.append("Consider trimming unnecessary prompt input")

        if self.total_cost / self.total_calls > 0.1:
            warnings.append("Average cost per call is high, consider a cheaper model")
            recommendations.append("Use gpt-4o-mini for simple tasks")

        if len(self.history) >= 10:
            recent = self.history[-10:]
            span_minutes = (recent[-1].timestamp - recent[0].timestamp).total_seconds() / 60
            if span_minutes > 0 and len(recent) / span_minutes > 10:
                warnings.append("High call frequency, watch the provider's rate limits")
                recommendations.append("Cache results locally to avoid repeated calls")

        expensive = sum(1 for r in self.history if r.model in EXPENSIVE_MODELS)
        cheap = sum(1 for r in self.history if r.model in CHEAP_MODELS)
        if expensive > cheap * 2:
            recommendations.append("Route more simple tasks to cheaper models")

        return {"efficiency": efficiency, "recommendations": recommendations, "warnings": warnings}

    def print_efficiency_analysis(self) -> None:
        analysis = self.efficiency_analysis()
        print("\n  Token Efficiency Analysis:")
        print(f"    Rating: {analysis['efficiency']}")
        if analysis["warnings"]:
            print("    Warnings:")
            for i, warning in enumerate(analysis["warnings"], start=1):
                print(f"      {i}. {warning}")
        if analysis["recommendations"]:
            print("    Recommendations:")
            for i, rec in enumerate(analysis["recommendations"], start=1):
                print(f"      {i}. {rec}")
