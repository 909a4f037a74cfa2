"""Interviewer guidance shown next to the recording controls."""

GOAL = (
    'Help the interviewee evoke a specific past moment. Move from "what" '
    '(content) to "how" (experience).'
)

GOLDEN_RULES = (
    ("do", "Ask HOW (process, feeling, sensory)."),
    ("avoid", "Avoid WHY (causes, justifications)."),
    ("do", "Use their exact words (echoing)."),
)

USEFUL_PROMPTS = (
    "When you say [word], what do you see/hear/feel?",
    "Take your time to let the moment come back...",
    "Where is that sensation located?",
    "Is it a moving image or a still one?",
)


def render_guide() -> str:
    """Plain-text interviewer guide."""
    lines = ["INTERVIEWER GUIDE", "", "The Goal", f"  {GOAL}", "", "Golden Rules"]
    for kind, rule in GOLDEN_RULES:
        mark = "+" if kind == "do" else "x"
        lines.append(f"  [{mark}] {rule}")
    lines += ["", "Useful Prompts"]
    lines += [f'  "{prompt}"' for prompt in USEFUL_PROMPTS]
    return "\n".join(lines) + "\n"
