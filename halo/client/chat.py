"""
Halo AI chat: Gemini generateContent over REST with three callable tools.

When the model answers with function calls, each one is executed against
the ``AppStateContainer`` (so the change is saved like any other edit) and
the results go back to the model for a natural-language reply. If that
follow-up call fails the mutation stays in place.
"""

import logging
from datetime import date
from typing import Any, Optional

import httpx

from ..config import GEMINI_API_BASE, GEMINI_API_KEY, GEMINI_MODEL
from ..domain.scheduling import service as scheduling
from .state import AppStateContainer

logger = logging.getLogger(__name__)

CHAT_TIMEOUT_SECONDS = 30
NOT_CONFIGURED_MESSAGE = "⚠️ Halo AI is not configured. Set GEMINI_API_KEY to enable AI features."
FALLBACK_REPLY = "I processed that request."

TOOL_DECLARATIONS = [
    {
        "name": "getFinancialStats",
        "description": "Get current revenue, appointment count, client count and progress towards the monthly goal.",
        "parameters": {"type": "OBJECT", "properties": {}},
    },
    {
        "name": "addClient",
        "description": "Add a new client to the database.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "name": {"type": "STRING", "description": "Full name of the client"},
                "email": {"type": "STRING", "description": "Email address"},
                "phone": {"type": "STRING", "description": "Phone number"},
            },
            "required": ["name"],
        },
    },
    {
        "name": "bookAppointment",
        "description": "Book a new appointment for a client.",
        "parameters": {
            "type": "OBJECT",
            "properties": {
                "clientName": {"type": "STRING", "description": "Name of the client"},
                "date": {"type": "STRING", "description": "Date in YYYY-MM-DD format"},
                "time": {"type": "STRING", "description": "Time in HH:MM 24-hour format"},
                "serviceName": {"type": "STRING", "description": "Name of the service (e.g. Haircut)"},
            },
            "required": ["clientName", "date", "time"],
        },
    },
]


class ChatError(Exception):
    """A Gemini call failed; the message is safe to show to the user"""


def _friendly_error(status_code: int, body: str, model: str) -> str:
    if status_code in (401, 403) or "API key" in body:
        return "⚠️ Invalid API key. Check that GEMINI_API_KEY is correct."
    if status_code == 404:
        return f'⚠️ Model "{model}" not available.'
    if status_code == 429:
        return "⚠️ API quota exceeded. Please try again later."
    return f"⚠️ AI error: HTTP {status_code}"


def _response_text(content: dict) -> str:
    return "".join(part.get("text", "") for part in content.get("parts", [])).strip()


class GeminiChatAdapter:
    def __init__(
        self,
        state: AppStateContainer,
        api_key: Optional[str] = GEMINI_API_KEY,
        model: str = GEMINI_MODEL,
        api_base: str = GEMINI_API_BASE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.state = state
        self.api_key = api_key
        self.model = model
        self.url = f"{api_base}/models/{model}:generateContent"
        self.history: list[dict] = []
        self._client = httpx.AsyncClient(timeout=CHAT_TIMEOUT_SECONDS, transport=transport)

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def system_instruction(self) -> str:
        profile = self.state.business_profile
        services = ", ".join(f"{s.name} (${s.price:g})" for s in profile.services) if profile else ""
        return (
            f"You are Halo, an AI assistant for the service business {profile.name if profile and profile.name else 'the business'}. "
            f"Owner: {profile.ownerName if profile and profile.ownerName else 'the owner'}. "
            f"Services offered: {services or 'none configured'}. "
            "Be concise and confirm every action you take with a tool. "
            f"Current date: {date.today().isoformat()}. "
            f"Total clients: {len(self.state.clients)}. Total appointments: {len(self.state.appointments)}."
        )

    async def _generate(self) -> dict:
        payload = {
            "systemInstruction": {"parts": [{"text": self.system_instruction()}]},
            "contents": self.history,
            "tools": [{"functionDeclarations": TOOL_DECLARATIONS}],
        }
        try:
            response = await self._client.post(self.url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ Gemini request failed: {e}")
            raise ChatError("⚠️ Network error. Check your internet connection and try again.") from e

        if response.status_code >= 400:
            logger.error(f"❌ Gemini returned HTTP {response.status_code}: {response.text[:200]}")
            raise ChatError(_friendly_error(response.status_code, response.text, self.model))

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.error(f"❌ Gemini returned an unreadable body: {response.text[:200]}")
            raise ChatError("⚠️ AI error: unreadable response")

        candidates = body.get("candidates") or [{}]
        content = candidates[0].get("content") or {"role": "model", "parts": []}
        content.setdefault("role", "model")
        return content

    def execute_tool(self, name: str, args: dict[str, Any]) -> dict:
        logger.info(f"🛠️ Executing tool {name} with {args}")

        if name == "getFinancialStats":
            return scheduling.business_stats(self.state.document)

        if name == "addClient":
            client = self.state.add_client(
                name=args["name"],
                email=args.get("email") or "",
                phone=args.get("phone") or "",
                preferences="Added via AI",
            )
            return {"success": True, "message": f"Client {client.name} added successfully."}

        if name == "bookAppointment":
            try:
                appointment, service = self.state.book_appointment(
                    client_name=args["clientName"],
                    date=args["date"],
                    time=args["time"],
                    service_name=args.get("serviceName"),
                )
            except scheduling.NoServicesConfigured as e:
                return {"error": str(e)}
            return {
                "success": True,
                "message": f"Booked {appointment.clientName} for {service.name} at {appointment.time} on {appointment.date}.",
            }

        return {"error": "Unknown function"}

    async def send_message(self, text: str) -> str:
        """Send one user message and return the model's reply, or a user-facing error"""
        if not self.available:
            return NOT_CONFIGURED_MESSAGE

        self.history.append({"role": "user", "parts": [{"text": text}]})
        try:
            content = await self._generate()
            self.history.append(content)

            calls = [part["functionCall"] for part in content.get("parts", []) if "functionCall" in part]
            if calls:
                responses = []
                for call in calls:
                    try:
                        result = self.execute_tool(call["name"], call.get("args") or {})
                    except KeyError as e:
                        result = {"error": f"Missing argument: {e.args[0]}"}
                    responses.append(
                        {"functionResponse": {"name": call["name"], "response": {"result": result}}}
                    )
                self.history.append({"role": "user", "parts": responses})

                content = await self._generate()
                self.history.append(content)
        except ChatError as e:
            return str(e)

        return _response_text(content) or FALLBACK_REPLY

    async def aclose(self):
        await self._client.aclose()
