from __future__ import annotations

import json
import logging

from app.ai.types import GenerationParams
from app.core.resume_store import JsonFileStore
from app.schemas.chat import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ConversationMessageResponse,
    Persona,
    UserContext,
)
from app.services.generation import GenerationError, generate_json, generate_text

logger = logging.getLogger("app.chat")

DEFAULT_TITLE = "New Conversation"
DEFAULT_ONBOARDING_QUESTIONS = [
    "What's your current role or field?",
    "What type of position are you targeting?",
    "Do you have a resume ready to share?",
]
_max_history = 5

PERSONA_TEMPERATURE: dict[str, float] = {
    "strict_hr": 0.3,
    "counsellor": 0.5,
    "friend": 0.7,
}

PERSONA_INSTRUCTIONS: dict[str, str] = {
    "strict_hr": """You are a STRICT HR PROFESSIONAL conducting resume reviews and interview screenings.

TONE: Professional, blunt, direct, no sugar-coating
PURPOSE: Give critical resume feedback, highlight weak points, simulate tough interview scenarios

GUIDELINES:
- Be brutally honest about resume weaknesses
- Point out generic statements and lack of quantification
- Challenge vague claims and ask for specific metrics
- Simulate real HR screening questions
- Don't hesitate to reject weak responses
- Focus on ATS compatibility and recruiter perspective
- Demand concrete numbers, percentages, and measurable impact
- Call out buzzwords without substance

EXAMPLE RESPONSES:
- "Your resume summary is too generic. No recruiter will remember you for this. Quantify your impact: how much did you improve sales or performance?"
- "This experience section lacks metrics. 'Improved efficiency' means nothing. By what percentage? How many hours saved?"
- "Your skills list is just buzzwords. Where's the proof? Show me projects or certifications."

Keep responses concise, direct, and actionable. No flattery.""",
    "counsellor": """You are an EMPATHETIC CAREER COUNSELLOR helping professionals grow their careers.

TONE: Empathetic, structured, supportive yet professional, coach-like
PURPOSE: Suggest improvement plans, upskilling paths, confidence-building advice

GUIDELINES:
- Acknowledge strengths before suggesting improvements
- Provide structured, step-by-step guidance
- Recommend specific courses, certifications, and learning paths
- Help build confidence while being realistic
- Create actionable career development plans
- Focus on long-term growth and skill development
- Encourage portfolio building and practical projects
- Balance encouragement with honest assessment

EXAMPLE RESPONSES:
- "You've got a solid foundation in web development. Have you considered enhancing your portfolio with a real-world project like an API-based dashboard?"
- "I see you have experience with React. To stand out, I'd recommend adding Next.js and TypeScript to your skillset. Here's a learning path..."
- "Your background shows great potential. Let's work on quantifying your achievements and building a portfolio that showcases your skills."

Provide detailed, actionable advice with specific resources and timelines.""",
    "friend": """You are a SUPPORTIVE FRIEND helping with career and job search stress.

TONE: Casual, warm, motivational, relatable, encouraging
PURPOSE: Reduce stress, provide motivation, casual career chat, emotional support

GUIDELINES:
- Use casual language and emojis appropriately
- Be genuinely encouraging and supportive
- Share relatable experiences and normalize struggles
- Celebrate small wins and progress
- Reduce interview anxiety and imposter syndrome
- Keep things light while being helpful
- Use humor when appropriate
- Make career advice feel less intimidating

EXAMPLE RESPONSES:
- "Hey, don't worry too much! You've got this 😎. Let's tweak your resume title a bit to make it pop, okay?"
- "I totally get the interview jitters! Here's a trick: practice your answers out loud. It really helps! 💪"
- "Your skills are solid! Sometimes we just need to present them better. Let's make your resume shine! ✨"
- "Job hunting is tough, but you're doing great by being proactive. Take it one step at a time! 🚀"

Keep it conversational, uplifting, and friendly. Make career advice feel like chatting with a supportive buddy.""",
}

ONBOARDING_SYSTEM_INSTRUCTION = (
    "You are a helpful career assistant. Based on the user's goal, generate 3-5 specific questions "
    "to gather necessary information. Return ONLY a JSON array of question strings."
)

TITLE_SYSTEM_INSTRUCTION = (
    "Generate a short, descriptive title (max 6 words) for a career conversation based on the user's "
    "first message. Return ONLY the title text, no quotes or extra formatting."
)


def build_context_block(context: UserContext | None) -> str:
    if context is None:
        return ""
    parts: list[str] = []
    if context.resume_text:
        parts.append(f"\n\nUSER'S RESUME:\n{context.resume_text[:2000]}")
    if context.job_description:
        parts.append(f"\n\nTARGET JOB DESCRIPTION:\n{context.job_description[:1500]}")
    if context.current_qualification:
        parts.append(f"\n\nCURRENT QUALIFICATION: {context.current_qualification}")
    if context.parsed_resume_data is not None:
        skills = context.parsed_resume_data.get("skills") or []
        parts.append(f"\n\nPARSED SKILLS: {json.dumps(skills)}")
    return "".join(parts)


def build_chat_prompt(message: str, history: list[ChatMessage]) -> str:
    recent = history[-_max_history:]
    lines = ""
    if recent:
        lines = "\n\nRECENT CONVERSATION:\n" + "".join(
            f"{'User' if item.role == 'user' else 'Assistant'}: {item.content}\n" for item in recent
        )
    return f"{lines}\n\nUser: {message}\n\nAssistant:"


async def generate_chat_response(request: ChatRequest, *, api_key: str | None = None) -> ChatResponse:
    system_instruction = PERSONA_INSTRUCTIONS[request.persona] + build_context_block(request.user_context)
    text = await generate_text(
        task="chat_response",
        system_instruction=system_instruction,
        prompt=build_chat_prompt(request.message, request.conversation_history),
        params=GenerationParams(temperature=PERSONA_TEMPERATURE[request.persona], max_output_tokens=1000),
        api_key=api_key,
        failure_label="generate chat response",
    )
    return ChatResponse(message=text.strip(), persona=request.persona)


async def generate_onboarding_questions(goal: str, *, api_key: str | None = None) -> list[str]:
    """Ask the model for 3-5 intake questions; any failure past the key check yields the defaults."""
    try:
        payload = await generate_json(
            task="onboarding_questions",
            system_instruction=ONBOARDING_SYSTEM_INSTRUCTION,
            prompt=(
                f"User's goal: {goal}\n\n"
                'Generate 3-5 questions to help them. Return format: ["question1", "question2", "question3"]'
            ),
            params=GenerationParams(temperature=0.5, max_output_tokens=500),
            api_key=api_key,
            failure_label="generate onboarding questions",
        )
    except GenerationError as exc:
        if exc.code == "missing_api_key":
            raise
        logger.warning("onboarding_questions_fallback: %s", exc)
        return list(DEFAULT_ONBOARDING_QUESTIONS)

    questions = [str(item).strip() for item in payload if str(item).strip()] if isinstance(payload, list) else []
    return questions or list(DEFAULT_ONBOARDING_QUESTIONS)


async def generate_conversation_title(first_message: str, *, api_key: str | None = None) -> str:
    try:
        title = await generate_text(
            task="conversation_title",
            system_instruction=TITLE_SYSTEM_INSTRUCTION,
            prompt=first_message,
            params=GenerationParams(temperature=0.3, max_output_tokens=50),
            api_key=api_key,
            failure_label="generate conversation title",
        )
    except GenerationError as exc:
        if exc.code == "missing_api_key":
            raise
        logger.warning("conversation_title_fallback: %s", exc)
        return DEFAULT_TITLE
    return title.strip() or DEFAULT_TITLE


class ConversationNotFound(LookupError):
    pass


async def send_conversation_message(
    store: JsonFileStore,
    *,
    user_id: str,
    conversation_id: str,
    message: str,
    persona: Persona | None = None,
    api_key: str | None = None,
) -> ConversationMessageResponse:
    conversation = store.get_conversation(conversation_id)
    if conversation is None or conversation.user_id != user_id:
        raise ConversationNotFound(conversation_id)

    active_persona = persona or conversation.persona
    history = [ChatMessage(role=m.role, content=m.content) for m in store.list_messages(conversation_id)]
    stored_context = store.get_chat_context(user_id)
    context = UserContext.model_validate(stored_context.model_dump()) if stored_context else None

    reply = await generate_chat_response(
        ChatRequest(
            message=message,
            persona=active_persona,
            conversation_history=history,
            user_context=context,
        ),
        api_key=api_key,
    )

    user_message = store.add_message(conversation_id=conversation_id, role="user", content=message)
    assistant_message = store.add_message(conversation_id=conversation_id, role="assistant", content=reply.message)

    changes: dict[str, str] = {}
    if active_persona != conversation.persona:
        changes["persona"] = active_persona
    if not history and conversation.title == DEFAULT_TITLE:
        changes["title"] = await generate_conversation_title(message, api_key=api_key)
    updated = store.update_conversation(conversation_id, **changes) or conversation

    logger.info(
        json.dumps(
            {
                "event": "conversation_message",
                "conversation_id": conversation_id,
                "persona": active_persona,
                "history_len": len(history),
                "reply_len": len(reply.message),
            },
            ensure_ascii=False,
        )
    )
    return ConversationMessageResponse(
        conversation=updated,
        user_message=user_message,
        assistant_message=assistant_message,
    )
