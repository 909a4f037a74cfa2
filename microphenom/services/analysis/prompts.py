"""
Prompt templates for the three analysis request variants.

The welcome prompt asks for short free text. Both analysis prompts share
the same five-step micro-phenomenological protocol and embed the fixed
output schema so the backend returns a document ``parse_analysis_result``
can validate.
"""

import json

from microphenom.core.models import DEFAULT_SPEAKER, DEFAULT_TIMESTAMP

DEFAULT_WELCOME_MESSAGE = (
    "Welcome. Let's explore the micro-dimensions of your experience. "
    "Please start by identifying a specific moment you wish to investigate."
)

OUTPUT_SCHEMA = {
    "transcriptSegments": [
        {"speaker": "Speaker Name", "text": "Segment text...", "timestamp": "00:00"}
    ],
    "summary": "Brief summary of the target experience...",
    "diachronicStructure": [
        {
            "phase": "Phase Name",
            "description": "What happened",
            "timestampEstimate": "approx time like 00:00",
        }
    ],
    "synchronicStructure": [
        {
            "modality": "Visual/Auditory/Kinesthetic/etc",
            "description": "Description of the sensation",
            "submodality": "specific quality",
        }
    ],
    "satellites": ["Satellite comment 1", "Satellite comment 2"],
    "suggestions": ["Question 1", "Question 2"],
}

WELCOME_PROMPT = """\
You are a warm, insightful micro-phenomenology research guide.
Address the user directly.
Write a brief, welcoming message (max 50 words) for a user about to record an interview.
1. Explain that the goal is to slow down and discover the specific "how" of a lived experience.
2. Suggest they start by bringing to mind a single, concrete moment to explore.
"""

_ANALYSIS_STEPS = """\
2. **Preprocessing**: Identify "satellite" information. In micro-phenomenology, satellites \
are comments, judgments, generalizations, context, or theoretical knowledge that is NOT the \
direct lived experience. Separate these into "satellites".
3. **Diachronic Analysis**: Identify the temporal evolution of the specific experience \
described. Break it down into sequential phases (the "film" of the experience), in order.
4. **Synchronic Analysis**: For the key moments, identify the sensory modalities (Visual, \
Auditory, Kinesthetic/Bodily, etc.) and how they appear (submodalities, e.g. "blurry image", \
"internal tension").
5. **Suggestions**: Suggest 2-3 follow-up questions the interviewer could ask to deepen the \
evocation of the "how".
"""


def _schema_block() -> str:
    return json.dumps(OUTPUT_SCHEMA, indent=2)


def build_text_prompt(text: str) -> str:
    """Analysis prompt for a written transcript, embedding it verbatim."""
    return f"""\
You are an expert micro-phenomenology researcher. Your task is to analyze the following \
text transcript of an interview.

Perform the following steps:
1. **Structure**: Split the transcript into logical segments. If speaker labels are present \
in the text, use them. If not, use '{DEFAULT_SPEAKER}' or 'Subject'. Assign \
'{DEFAULT_TIMESTAMP}' to timestamps that are missing.
{_ANALYSIS_STEPS}
Return ONLY valid JSON in exactly this format:
{_schema_block()}

TRANSCRIPT TEXT:
{text}
"""


def build_audio_prompt() -> str:
    """Analysis prompt sent together with the inline audio payload."""
    return f"""\
You are an expert micro-phenomenology researcher. Your task is to analyze the attached \
audio recording of an interview.

Perform the following steps:
1. **Transcription & Diarization**: Transcribe the interview verbatim as a list of segments. \
Identify speakers (e.g. 'Interviewer', 'Interviewee'); if a speaker cannot be identified, \
use '{DEFAULT_SPEAKER}'. Give each segment its start time as MM:SS, or '{DEFAULT_TIMESTAMP}' \
if unknown.
{_ANALYSIS_STEPS}
Return ONLY valid JSON in exactly this format:
{_schema_block()}
"""
