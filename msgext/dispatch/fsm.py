from __future__ import annotations

from statemachine import State, StateMachine


class DispatchFSM(StateMachine):
    """Stage tracker for a single compose-extension dispatch.

    - stages: matched -> validated -> extracted -> invoked -> shaped -> emitted
    - `reply_suppressed` ends the dispatch without emitting when an invoke response
      was already queued for the turn (either before or after shaping).

    Firing an event out of order raises `TransitionNotAllowed`. Nothing is persisted;
    the machine lives for one dispatch.
    """

    matched = State("matched", initial=True)
    validated = State("validated")
    extracted = State("extracted")
    invoked = State("invoked")
    shaped = State("shaped")
    emitted = State("emitted", final=True)
    suppressed = State("suppressed", final=True)

    check_passed = matched.to(validated)
    input_extracted = validated.to(extracted)
    handler_returned = extracted.to(invoked)
    response_shaped = invoked.to(shaped)
    reply_sent = shaped.to(emitted)
    reply_suppressed = invoked.to(suppressed) | shaped.to(suppressed)

    @property
    def stage(self) -> str:
        return str(self.current_state.id)
