"""Prompt builders for the coach persona and the user profile."""

from datetime import datetime

from calorie_coach.domain.meals import DailySummary
from calorie_coach.domain.profiles import (
    ActivityLevel,
    CoachProfile,
    Gender,
    Goal,
    UserProfile,
)

WEEKDAYS = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

GOAL_LABELS = {
    Goal.WEIGHT_LOSS: "lose weight",
    Goal.MUSCLE_GAIN: "gain muscle",
    Goal.MAINTENANCE: "maintain current weight",
}

GENDER_LABELS = {
    Gender.MALE: "male",
    Gender.FEMALE: "female",
    Gender.OTHER: "other",
}

ACTIVITY_LABELS = {
    ActivityLevel.SEDENTARY: "low (mostly desk work)",
    ActivityLevel.LIGHT: "medium (standing work or light exercise)",
    ActivityLevel.MODERATE: "high (regular vigorous exercise)",
    ActivityLevel.ACTIVE: "very high (intense training or physical labour)",
}

LANGUAGE_RULE = (
    "Always answer in Japanese unless the user clearly writes in another language."
)


def format_today(now: datetime) -> str:
    """Return ``YYYY-MM-DD (Weekday)`` for the prompt header."""
    return f"{now.date().isoformat()} ({WEEKDAYS[now.weekday()]})"


def coach_header(coach: CoachProfile) -> str:
    return (
        f"Role: personal coach {coach.name} of the AI diet coach calorie tracker.\n"
        f"Name: {coach.name}\n"
        f"Personality: {coach.personality}\n"
        f"Background: {coach.background}\n"
        f"Tone: {coach.tone}"
    )


def profile_block(profile: UserProfile) -> str:
    return (
        "[User profile]\n"
        f"- Name: {profile.name}\n"
        f"- Age: {profile.age}\n"
        f"- Gender: {GENDER_LABELS[profile.gender]}\n"
        f"- Height: {profile.height_cm:g} cm\n"
        f"- Weight: {profile.weight_kg:g} kg\n"
        f"- Activity level: {ACTIVITY_LABELS[profile.activity_level]}\n"
        f"- Goal: {GOAL_LABELS[profile.goal]}\n"
        f"- Daily calorie target (TDEE): {profile.tdee} kcal"
    )


def build_system_instruction(profile: UserProfile) -> str:
    """System instruction for the meal intake classifier."""
    coach = profile.coach
    return "\n\n".join(
        [
            coach_header(coach),
            profile_block(profile),
            (
                "Mission: make logging meals effortless so the user looks forward "
                "to opening the app."
            ),
            (
                "[Conversation rules]\n"
                f"1. Address the user by name as {profile.name}さん.\n"
                "2. When asked about past meals or calories, answer only from the "
                "data provided. If there is no record for a date, say so honestly "
                "and never invent numbers or foods.\n"
                "3. Speak in the configured tone at all times.\n"
                f"4. {LANGUAGE_RULE}"
            ),
        ]
    )


def build_chat_instruction(
    profile: UserProfile, now: datetime, today: DailySummary | None = None
) -> str:
    """System instruction for the free-form coaching responder."""
    coach = profile.coach
    sections = [
        coach_header(coach),
        profile_block(profile),
        f"[Current information]\nToday: {format_today(now)}",
    ]
    if today is not None:
        sections.append(
            "[Logged today]\n"
            f"- Calories: {today.calories} / {today.target} kcal "
            f"(remaining {today.remaining} kcal)\n"
            f"- Protein {today.protein:g} g, fat {today.fat:g} g, "
            f"carbs {today.carbs:g} g"
        )
    sections.extend(
        [
            (
                "[Mode: small talk and consultation]\n"
                "No meal analysis or logging happens in this mode. Build trust and "
                "keep the user motivated."
            ),
            (
                "[Absolute rules]\n"
                "1. Never output JSON. Reply with plain text only.\n"
                f"2. Never break {coach.name}'s tone ({coach.tone}).\n"
                "3. If the user says they ate something, do not log it or announce "
                "that it was recorded (logging happens elsewhere). Only share an "
                "opinion or nutrition advice about it.\n"
                f"4. {LANGUAGE_RULE}"
            ),
            (
                "[Coaching guidelines]\n"
                "- Accept and affirm the user's actions and feelings first.\n"
                "- Reframe negative remarks in a positive light.\n"
                "- Suggest one small healthy action that fits the conversation."
            ),
        ]
    )
    return "\n\n".join(sections)


def build_intake_prompt(
    profile: UserProfile, now: datetime, recent_context: str
) -> str:
    """Task prompt appended after the user's content parts."""
    return (
        f"Current date: {format_today(now)}\n\n"
        "[Recent conversation]\n"
        f"{recent_context or '(none)'}\n\n"
        "Your task is to decide whether the user's input is a meal report and, "
        "if so, structure it.\n\n"
        "[Output mode]\n"
        "1. Meal report: set is_food_related = true and estimate nutrition.\n"
        "   - A dish name, a statement of eating or drinking, or a photo of food "
        "counts as a meal.\n"
        "   - A single word such as 'cola' or 'banana' also counts as a meal.\n"
        "2. Not a meal (small talk or questions): set is_food_related = false.\n"
        "   - Greetings, 'I'm hungry', 'I want to lose weight'.\n"
        "   - System talk such as 'thanks for logging' or 'show my report'.\n"
        "   - In this case set every meal_data number to 0.\n\n"
        "[Date]\n"
        "- target_date is the day the meal was eaten as YYYY-MM-DD. Resolve "
        "relative expressions such as 'yesterday' against the current date. "
        "Use today when no date is mentioned.\n\n"
        "[Calorie rules]\n"
        "- Calculate like a professional dietitian using standard food "
        "databases.\n"
        "- With a photo, estimate the portion actually shown (grams and size) as "
        "precisely as possible and calculate calories from that amount, not from "
        "a generic per-dish average.\n"
        "- The photo takes priority; caption text is supplementary context.\n\n"
        "[Replies]\n"
        "- feedback: your reply to the user in the coach's tone.\n"
        "- confirmation_message: a short line shown after the user accepts the "
        "log.\n\n"
        f"User goal: {GOAL_LABELS[profile.goal]}"
    )


def build_persona_prompt(style_hint: str | None) -> str:
    """Prompt for generating a new coach persona."""
    if style_hint and style_hint.strip():
        type_line = f"Coach type requested by the user: '{style_hint.strip()}'"
    else:
        type_line = (
            "Coach type: pick one at random (hot-blooded, soothing, cool, "
            "humorous, tsundere, ...)"
        )
    return (
        "Design the character of a new AI coach for a diet app.\n\n"
        "[Basics]\n"
        f"- {type_line}\n\n"
        "[Most important: charm and quirks]\n"
        "- We do not want a model-student AI. Give the coach strong appeal, "
        "warmth and quirks (an odd obsession, a personal philosophy, a funny "
        "catchphrase) so the user thinks 'I'll report to this one again "
        "tomorrow'.\n"
        "- Make the coach a partner with depth: strict at times, playful at "
        "others.\n"
        "- Visual impact matters: a memorable, shareable look. Any form is fine "
        "(human, animal, robot, food spirit, monster) as long as it fits the "
        "personality.\n\n"
        "[Fields]\n"
        "- name: memorable and unique.\n"
        "- personality: concrete quirks and charm.\n"
        "- background: history or back story.\n"
        "- tone: concrete speech style and catchphrases.\n"
        "- greeting: first message to the user, at most 50 characters.\n"
        "- image_prompt: a detailed English prompt for generating the avatar "
        "image.\n\n"
        "Write name, personality, background, tone and greeting in Japanese."
    )
