"""Intent handlers, grouped by concern.

Every handler is ``async def handle_x(intent, services, utterance) -> DispatchResult``
and may raise KoyomiError subclasses; the dispatcher turns those into results.
"""
