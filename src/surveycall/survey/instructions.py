"""
Rendering of flow decisions into the platform's call-flow format.
"""

from collections.abc import Iterable

from surveycall.survey.flow import FlowDecision, SurveyState
from surveycall.survey.questions import QuestionBank
from surveycall.survey.schemas import (
    CallFlow,
    RecordOptions,
    RecordStep,
    SayOptions,
    SayStep,
)

FLOW_TITLE = "Survey Call Step"

SAY_VOICE = "male"
SAY_LANGUAGE = "en-US"

# Finish either on key press or after 10 seconds of silence
RECORD_FINISH_ON_KEY = "any"
RECORD_TIMEOUT_SECONDS = 10

WELCOME_TEMPLATE = (
    "Welcome to our survey! You will be asked {count} questions. "
    "The answers will be recorded. Speak your response for each and press any key "
    "on your phone to move on to the next question. Here is the first question:"
)
CLOSING_MESSAGE = "You have completed our survey. Thank you for participating!"


def build_say(text: str) -> SayStep:
    return SayStep(options=SayOptions(payload=text, voice=SAY_VOICE, language=SAY_LANGUAGE))


def build_record(callback_url: str) -> RecordStep:
    return RecordStep(
        options=RecordOptions(
            finish_on_key=RECORD_FINISH_ON_KEY,
            timeout=RECORD_TIMEOUT_SECONDS,
            on_finish=callback_url,
        )
    )


def build_flow(steps: Iterable[SayStep | RecordStep]) -> CallFlow:
    return CallFlow(title=FLOW_TITLE, steps=list(steps))


def render_decision(
    decision: FlowDecision,
    questions: QuestionBank,
    callback_url: str,
) -> CallFlow:
    """Render a decision as say/record steps.

    Args:
        decision: Output of FlowEngine.advance.
        questions: Question bank the decision refers to.
        callback_url: Absolute URL the record step posts back to.

    Returns:
        Call flow with zero to two say steps and at most one record step.
    """
    if decision.state is SurveyState.COMPLETE:
        return build_flow([build_say(CLOSING_MESSAGE)])

    steps: list[SayStep | RecordStep] = []
    if decision.welcome:
        steps.append(build_say(WELCOME_TEMPLATE.format(count=questions.question_count())))
    steps.append(build_say(questions.question_at(decision.answered)))
    steps.append(build_record(callback_url))
    return build_flow(steps)
