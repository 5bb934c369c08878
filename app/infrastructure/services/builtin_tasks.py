"""Global built-in tasks, registered in process at startup."""

from app.domain.entities.task import TaskDefinition
from app.shared.utils.datetime import utc_now

GET_PAGE_SOURCE = '''\
async def handler(params, context):
    url = params.get("url")
    if not url:
        raise ValueError("URL parameter is required")
    context.console.log(f"Fetching page: {url}")
    response = await context.services["http"].get(url, follow_redirects=True)
    response.raise_for_status()
    return {
        "url": url,
        "status": response.status_code,
        "content": response.text,
        "timestamp": context.services["datetime"].now().isoformat(),
        "success": True,
    }
'''

SEND_SMS_SOURCE = '''\
async def handler(params, context):
    to = params.get("to")
    message = params.get("message")
    if not to or not message:
        raise ValueError("Both 'to' and 'message' parameters are required")
    context.console.log(f"Sending SMS to: {to}")
    sent = await context.services["sms"].send(to, message)
    return {"to": to, "status": sent.get("status"), "messageId": sent.get("sid")}
'''


def builtin_tasks() -> list[TaskDefinition]:
    now = utc_now()
    return [
        TaskDefinition(
            id="getPage",
            description="Fetch web page content",
            implementation_code=GET_PAGE_SOURCE,
            required_services=["http", "datetime"],
            is_user_task=False,
            created_at=now,
            updated_at=now,
        ),
        TaskDefinition(
            id="sendSms",
            description="Send SMS message using Twilio",
            implementation_code=SEND_SMS_SOURCE,
            required_services=["sms"],
            is_user_task=False,
            created_at=now,
            updated_at=now,
        ),
    ]
