DEFAULT_SUMMARY_PROMPT = """You summarize meeting transcripts for people who missed the meeting.

Read the transcript below and write a summary in Russian:

1. One or two sentences on what the meeting was about.
2. The main points discussed, as a bulleted list.
3. Decisions that were made.
4. Action items and deadlines, with owners when they are named.

Keep it concise and use a formal business register. Everything, including
headings, must be in Russian.
"""


SUMMARY_USER_TEMPLATE = """{prompt}

<transcript>
{transcript}
</transcript>"""


ITALIAN_TRANSLATION_PROMPT = """Translate the English sentence below into simple Italian for a beginner.

<english_sentence>
{sentence}
</english_sentence>

Rules:
- basic vocabulary and short sentence structures
- no idioms or advanced grammar
- keep the meaning of the original

Reply with the Italian sentence only. No notes, no explanations, no English."""
