"""Send pipeline: classification, context selection, dispatch and telemetry."""

from mindchat.pipeline.send import SendCoordinator, SendRequest, SendResult, SendStage

__all__ = ["SendCoordinator", "SendRequest", "SendResult", "SendStage"]
