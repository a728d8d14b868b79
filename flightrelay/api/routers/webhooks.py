from fastapi import APIRouter, Depends, Request, Response, status

from flightrelay.api.dependencies import get_channel, get_correlation_id, get_dispatcher
from flightrelay.channels.whatsapp.channel import WhatsAppChannel
from flightrelay.domain.services.dispatcher import RequestDispatcher
from flightrelay.utils.exceptions import ValidationException
from flightrelay.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

TWIML_MEDIA_TYPE = "text/xml"


@router.post(
    "/whatsapp",
    summary="Handle Twilio WhatsApp webhook",
    description="Answers an inbound WhatsApp message with a TwiML reply",
    status_code=status.HTTP_200_OK
)
async def handle_whatsapp_webhook(
    request: Request,
    dispatcher: RequestDispatcher = Depends(get_dispatcher),
    channel: WhatsAppChannel = Depends(get_channel),
    correlation_id: str = Depends(get_correlation_id)
):
    """
    Twilio posts inbound messages as a form (`From`, `Body`, `MessageSid`).

    Twilio retries any non-2xx answer, so every outcome, including internal
    failures, is a 200 with a TwiML document.
    """
    try:
        form = await request.form()
        message = channel.normalize_message(form)
        logger.info(
            "Received WhatsApp webhook",
            extra={"sender": message.sender, "channel_message_id": message.channel_message_id}
        )
        reply = await dispatcher.handle(message)
        body = channel.format_response(reply)

    except ValidationException as e:
        logger.warning(f"Webhook validation error: {e.message}", extra={"details": e.details})
        body = channel.empty_response()

    except Exception as e:
        logger.error(f"Error processing WhatsApp webhook: {str(e)}", exc_info=True)
        body = channel.empty_response()

    return Response(content=body, media_type=TWIML_MEDIA_TYPE, status_code=status.HTTP_200_OK)
