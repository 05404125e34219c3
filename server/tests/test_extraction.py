from meeting_summarizer.services.extraction import (
    find_due_marker,
    output_action_extractor,
    output_decision_extractor,
    split_sentences,
    transcript_action_extractor,
    transcript_decision_extractor,
)

ACTION_TRANSCRIPT = (
    "Speaker 1: Let's assign the database task to John. "
    "Speaker 2: I'll finish the review by Wednesday."
)


def test_split_sentences_skips_abbreviations():
    assert split_sentences("Dr. Lee joined late. We started anyway.") == ["Dr. Lee joined late.", "We started anyway."]


def test_task_sentences_keep_their_speaker():
    items = transcript_action_extractor().extract(ACTION_TRANSCRIPT)

    assert items == [
        "Speaker 1: Let's assign the database task to John.",
        "Speaker 2: I'll finish the review by Wednesday. [Due: Wednesday]",
    ]


def test_annotated_speakers_become_owners():
    text = "John Smith (Technical Lead): I will send the report by Friday."

    assert transcript_action_extractor().extract(text) == [
        "John Smith (Technical Lead): I will send the report by Friday. [Due: Friday]"
    ]


def test_questions_and_chatter_are_not_tasks():
    text = "Speaker 1: Should we take a break? Speaker 2: The weather is nice today."

    assert transcript_action_extractor().extract(text) == []


def test_due_marker_variants():
    assert find_due_marker("Ship it by next week.") == "next week"
    assert find_due_marker("Draft due end of month please.") == "end of month"
    assert find_due_marker("No deadline here.") is None


def test_decisions_exclude_unresolved_discussion():
    text = (
        "Speaker 1: We decided to use Postgres. "
        "Speaker 2: The budget is not decided yet. "
        "Speaker 3: Everyone agreed on the Friday launch."
    )

    assert transcript_decision_extractor().extract(text) == [
        "Speaker 1: We decided to use Postgres.",
        "Speaker 3: Everyone agreed on the Friday launch.",
    ]


DETAILED_OUTPUT = """Overview:
The team reviewed the release plan.

Key Decisions:
- Launch moves to Friday

Action Items:
- John Smith: finish the migration (Due: Wednesday)
- Sarah Wilson: update the roadmap

Discussion Points:
- Hiring was mentioned briefly"""


def test_output_bullets_are_read_from_matching_section():
    assert output_action_extractor().extract(DETAILED_OUTPUT) == [
        "John Smith: finish the migration (Due: Wednesday)",
        "Sarah Wilson: update the roadmap",
    ]
    assert output_decision_extractor().extract(DETAILED_OUTPUT) == ["Launch moves to Friday"]


def test_plain_bullet_list_counts_entirely():
    output = "- Book the venue\n* Send invites\n1. Confirm catering"

    assert output_action_extractor().extract(output) == ["Book the venue", "Send invites", "Confirm catering"]


def test_short_prose_line_is_not_a_heading():
    output = "No blockers\n- Book the venue\n- Send invites"

    assert output_action_extractor().extract(output) == ["Book the venue", "Send invites"]


def test_markdown_headings_pick_the_section():
    output = "## Decisions\n- Ship on Friday\n\n**Action Items**\n- Maria: send the contract"

    assert output_action_extractor().extract(output) == ["Maria: send the contract"]
    assert output_decision_extractor().extract(output) == ["Ship on Friday"]


def test_prose_output_falls_back_to_keyword_sentences():
    output = "The group met briefly. Maria will send the contract tomorrow."

    assert output_action_extractor().extract(output) == ["Maria will send the contract tomorrow."]
