from __future__ import annotations

from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

from jinja2 import Environment, select_autoescape

from surveycall.survey.models import Participant
from surveycall.survey.questions import QuestionBank

PARTICIPANTS_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Survey participants</title>
</head>
<body>
  <h1>Survey participants</h1>
  <h2>Questions</h2>
  <ol>
  {% for question in questions %}
    <li>{{ question }}</li>
  {% endfor %}
  </ol>
  <h2>Participants ({{ participants | length }})</h2>
  {% for participant in participants %}
  <section>
    <h3>{{ participant.call_id }}</h3>
    <p>Number: {{ participant.number or "unknown" }} &middot;
       Answered {{ participant.answered }} of {{ questions | length }}</p>
    <table>
      <tr><th>Question</th><th>Answer</th></tr>
      {% for question in questions %}
      <tr>
        <td>{{ question }}</td>
        <td>
        {% set answer = participant.answers[loop.index0] if loop.index0 < participant.answers | length else none %}
        {% if answer %}
          <audio controls preload="none" src="{{ answer.url }}"></audio>
        {% else %}
          &ndash;
        {% endif %}
        </td>
      </tr>
      {% endfor %}
    </table>
  </section>
  {% else %}
  <p>No participants yet.</p>
  {% endfor %}
</body>
</html>
"""


def _play_url(call_id: str, leg_id: str, recording_id: str) -> str:
    segments = (quote(s, safe="") for s in (call_id, leg_id, recording_id))
    return "/play/" + "/".join(segments)


class AdminRenderer:
    """Renders the read-only participant listing."""

    def __init__(self) -> None:
        self._env = Environment(autoescape=select_autoescape(["html", "xml"], default=True))
        self._template = self._env.from_string(PARTICIPANTS_TEMPLATE)

    def render(self, questions: QuestionBank, participants: Sequence[Participant]) -> str:
        return self._template.render(**self.build_context(questions, participants))

    def build_context(
        self,
        questions: QuestionBank,
        participants: Sequence[Participant],
    ) -> dict[str, Any]:
        return {
            "questions": list(questions),
            "participants": [
                {
                    "call_id": p.call_id,
                    "number": p.number,
                    "answered": p.answered_count,
                    "answers": [
                        {
                            "leg_id": a.leg_id,
                            "recording_id": a.recording_id,
                            "url": _play_url(p.call_id, a.leg_id, a.recording_id),
                        }
                        for a in p.responses
                    ],
                }
                for p in participants
            ],
        }
