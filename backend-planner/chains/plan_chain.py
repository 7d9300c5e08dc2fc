from typing import Any, List, Optional, Union
from langchain_openai import ChatOpenAI
from langchain_core.prompts import ChatPromptTemplate
import logging
from config import settings
from errors import ConfigError
from models import User

logger = logging.getLogger(__name__)

NOT_INFORMED = "não informado"
FALLBACK_PLAN_TEXT = "Não foi possível gerar o planejamento. Tente novamente."
TEMPERATURE = 0.7

SYSTEM_INSTRUCTION = "Você é um especialista em tráfego pago e mídia online."

PLAN_TEMPLATE = """
Você é um planejador de tráfego pago sênior. Crie um plano completo de mídia paga de 30 dias.

Dados do usuário:
- Nome: {name}
- Plano: {plan}

Negócio / Nicho: {segment}
Objetivo principal: {objective}
Orçamento mensal: {budget}
Plataformas desejadas: {platforms}

Entregue o plano no seguinte formato:

1. Resumo da estratégia
2. Público-alvo e segmentações sugeridas
3. Estrutura de campanhas e conjuntos de anúncios
4. Sugestões de criativos (imagens, vídeos, copies)
5. Distribuição do orçamento (por plataforma e campanha)
6. Métricas principais para acompanhar
7. Sugestões de testes A/B para os 30 dias
"""

prompt = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_INSTRUCTION),
    ("human", PLAN_TEMPLATE),
])

FieldValue = Optional[Union[str, int, float, List[Any]]]


def format_field(value: FieldValue) -> str:
    """Renders a free-form input for the prompt, defaulting to the placeholder when empty."""
    if isinstance(value, list):
        value = ", ".join(str(v).strip() for v in value if str(v).strip())
    if value is None or (isinstance(value, str) and not value.strip()):
        return NOT_INFORMED
    return str(value).strip()


def build_prompt_inputs(user: User, segment: FieldValue, objective: FieldValue,
                        budget: FieldValue, platforms: FieldValue) -> dict:
    return {
        "name": user.name,
        "plan": user.plan,
        "segment": format_field(segment),
        "objective": format_field(objective),
        "budget": format_field(budget),
        "platforms": format_field(platforms),
    }


def get_llm():
    return ChatOpenAI(
        model=settings.OPENAI_MODEL,
        temperature=TEMPERATURE,
        api_key=settings.OPENAI_API_KEY,
        n=1,
    )


def extract_text(message: Any) -> str:
    content = getattr(message, "content", None)
    if isinstance(content, list):
        content = "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return content if isinstance(content, str) else ""


async def generate_plan(user: User, segment: FieldValue = None, objective: FieldValue = None,
                        budget: FieldValue = None, platforms: FieldValue = None) -> str:
    """
    Asks the chat model for a 30-day paid media plan.
    Single attempt, no streaming. Returns the model text verbatim, or the
    fallback message when the response carries no text.
    """
    if not settings.OPENAI_API_KEY:
        raise ConfigError("OPENAI_API_KEY não configurada no servidor. Configure a variável de ambiente para usar a IA.")

    chain = prompt | get_llm()
    inputs = build_prompt_inputs(user, segment, objective, budget, platforms)

    logger.info(f"Generating plan for user {user.id} with {settings.OPENAI_MODEL}")
    response = await chain.ainvoke(inputs)

    text = extract_text(response)
    if not text:
        logger.warning(f"Empty completion for user {user.id}, returning fallback text")
        return FALLBACK_PLAN_TEXT
    return text
