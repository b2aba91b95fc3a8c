from scenario_reason.models.payload import ClassifyRequest, SegmentPayload

__all__ = ["ClassifyRequest", "SegmentPayload"]
