"""Static catalog of the 52 values presented during sorting."""

from dataclasses import dataclass

EXPECTED_VALUE_COUNT = 52


@dataclass(frozen=True)
class Value:
    """A catalog value as shown on a sort card."""

    id: str
    name: str
    card_text: str


ALL_VALUES: tuple[Value, ...] = (
    Value("accountability", "Accountability", "Owning what you do and expecting the same of others"),
    Value("achievement", "Achievement", "Setting worthy goals and reaching them"),
    Value("authenticity", "Authenticity", "Being exactly who you are, without apology"),
    Value("balance", "Balance", "Finding time and energy for all the things that matter"),
    Value("care", "Care", "Looking after people, especially when they need it most"),
    Value("challenge", "Challenge", "Taking on hard things that make you stronger"),
    Value("collaboration", "Collaboration", "Accomplishing more together than you could alone"),
    Value("community", "Community", "Belonging to something bigger than yourself"),
    Value("compassion", "Compassion", "Seeing someone hurting and doing something about it"),
    Value("courage", "Courage", "Acting on conviction despite fear, risk, or personal cost"),
    Value("creativity", "Creativity", "Bringing something new into the world"),
    Value("curiosity", "Curiosity", "Exploring, questioning, and seeking to understand"),
    Value("development", "Development", "Growing your abilities and helping others grow theirs"),
    Value("dignity", "Dignity", "Treating every person as worthy of respect"),
    Value("discipline", "Discipline", "Doing what needs to be done, even when you don't feel like it"),
    Value("duty", "Duty", "Honoring the responsibilities you've accepted"),
    Value("empathy", "Empathy", "Feeling what others feel and seeing through their eyes"),
    Value("empowerment", "Empowerment", "Giving people what they need to succeed"),
    Value("excellence", "Excellence", "Refusing to settle for good enough"),
    Value("fairness", "Fairness", "Treating people justly and without favoritism"),
    Value("faith", "Faith", "Trusting in something greater than yourself"),
    Value("family", "Family", "Putting your people first"),
    Value("forgiveness", "Forgiveness", "Letting go of resentment and offering second chances"),
    Value("generosity", "Generosity", "Giving freely without keeping score"),
    Value("gratitude", "Gratitude", "Appreciating what you have and who made it possible"),
    Value("growth", "Growth", "Becoming more than you were"),
    Value("honesty", "Honesty", "Telling the truth, even when it's hard"),
    Value("honor", "Honor", "Living by a code you'd be proud to defend"),
    Value("humility", "Humility", "Knowing you don't have all the answers"),
    Value("inclusion", "Inclusion", "Making room for everyone at the table"),
    Value("independence", "Independence", "Standing on your own two feet"),
    Value("integrity", "Integrity", "Doing what's right, even when no one is watching"),
    Value("joy", "Joy", "Taking real pleasure in life's moments"),
    Value("justice", "Justice", "Righting wrongs and standing up for what's fair"),
    Value("kindness", "Kindness", "Being good to people just because"),
    Value("leadership", "Leadership", "Showing the way and bringing others with you"),
    Value("learning", "Learning", "Never being done learning"),
    Value("loyalty", "Loyalty", "Standing by your people through thick and thin"),
    Value("purpose", "Purpose", "Knowing why you're here and what you're for"),
    Value("resilience", "Resilience", "Getting knocked down and getting back up"),
    Value("resourcefulness", "Resourcefulness", "Finding a way when there isn't one"),
    Value("respect", "Respect", "Treating every person as someone who matters"),
    Value("responsibility", "Responsibility", "Doing what you said you would do"),
    Value("safety", "Safety", "Protecting people from harm"),
    Value("service", "Service", "Putting others' needs before your own"),
    Value("standards", "Standards", "Expecting the best from yourself and others"),
    Value("steadfastness", "Steadfastness", "Staying the course when things get hard"),
    Value("tradition", "Tradition", "Honoring what's been passed down and passing it on"),
    Value("transparency", "Transparency", "Being open about what you're doing and why"),
    Value("trust", "Trust", "Counting on others and being someone they can count on"),
    Value("well-being", "Well-being", "Taking care of your body, mind, and spirit"),
    Value("wisdom", "Wisdom", "Knowing what to do when it matters"),
)

if len(ALL_VALUES) != EXPECTED_VALUE_COUNT:
    raise RuntimeError(f"Expected {EXPECTED_VALUE_COUNT} values, got {len(ALL_VALUES)}")

VALUES_BY_ID: dict[str, Value] = {value.id: value for value in ALL_VALUES}
VALUES_BY_NAME: dict[str, Value] = {value.name: value for value in ALL_VALUES}

if len(VALUES_BY_ID) != EXPECTED_VALUE_COUNT:
    raise RuntimeError("Value catalog contains duplicate ids")

ALL_VALUE_IDS: tuple[str, ...] = tuple(VALUES_BY_ID)


def get_value_by_id(value_id: str) -> Value | None:
    """Look up a catalog value by id."""
    return VALUES_BY_ID.get(value_id)


def get_value_by_name(name: str) -> Value | None:
    """Look up a catalog value by display name."""
    return VALUES_BY_NAME.get(name)
