"""Prompt templates (corpus language: Brazilian Portuguese)."""
from typing import Optional

from .models.document import RetrievedContext

ACKNOWLEDGEMENT = "Entendido! Estou pronto para ajudar."

SYSTEM_PROMPT = """Você é um assistente de IA inteligente e prestativo.

CONTEXTO ESPECIAL:
- Você está integrado ao {product}, um sistema de sincronização unificada de estoques
- Você tem conhecimento especializado sobre o {product}
- O usuário é um usuário do {product}

SUAS CAPACIDADES:
1. Responder qualquer pergunta que o usuário fizer
2. Quando a pergunta for sobre o {product}, usar seu conhecimento especializado
3. Ser útil, claro, direto e amigável
4. Responder sempre em português do Brasil

DIRETRIZES:
- Seja conciso mas completo
- Use exemplos práticos quando apropriado
- Se não souber algo com certeza, seja honesto
- Para perguntas sobre o {product}, baseie-se na documentação fornecida
- Use formatação Markdown para melhorar a legibilidade (listas, negrito, etc)
- Quebre respostas longas em seções claras"""

CONTEXT_SECTION = """

CONHECIMENTO ESPECIALIZADO DO {product_upper}:
{context}

IMPORTANTE: Use as informações acima para responder perguntas sobre o {product} com precisão.
Cite as fontes quando relevante: {sources}"""

CLASSIFICATION_PROMPT = """Analise a seguinte pergunta e classifique se ela é relacionada ao sistema "{product}" ou é uma pergunta geral.

O {product} é um sistema de sincronização unificada de estoques que permite gerenciar múltiplas contas de ERP de forma centralizada e automatizada.

Pergunta: "{question}"

Retorne APENAS um JSON no seguinte formato:
{{
  "isDomainRelated": boolean,
  "confidence": number (0-1),
  "category": "{category}" | "technical" | "general",
  "reasoning": "breve explicação"
}}

Exemplos de perguntas relacionadas ao {product}:
- Como conectar contas?
- Como configurar webhooks?
- Como funciona a sincronização automática?
- Como gerenciar depósitos?

Exemplos de perguntas gerais:
- Como fazer bolo de chocolate?
- Explique física quântica
- Me conte uma piada

Analise e retorne o JSON:"""

VERIFICATION_PROMPT = """Você é um verificador de precisão. Analise se a RESPOSTA contém informações que são consistentes com o CONTEXTO fornecido.

CONTEXTO (fonte oficial):
{context}

PERGUNTA DO USUÁRIO:
{question}

RESPOSTA A VERIFICAR:
{answer}

Analise e retorne APENAS um JSON:
{{
  "isAccurate": boolean,
  "confidence": number (0-1),
  "inconsistencies": [lista de inconsistências encontradas],
  "suggestions": [sugestões de melhoria]
}}"""

ACCURACY_PROMPT = """Compare estas duas respostas e determine o quão similares elas são em termos de conteúdo e precisão.

RESPOSTA GERADA:
{answer}

RESPOSTA ESPERADA:
{expected}

Retorne APENAS um JSON:
{{
  "similarity": number (0-1),
  "isAccurate": boolean,
  "differences": [lista de principais diferenças]
}}"""


def build_system_prompt(
    retrieved_context: Optional[RetrievedContext] = None, product: str = "EstoqueUni"
) -> str:
    """System prompt, with the retrieved documentation appended when present."""
    prompt = SYSTEM_PROMPT.format(product=product)
    if retrieved_context is None or not retrieved_context.context:
        return prompt
    return prompt + CONTEXT_SECTION.format(
        product=product,
        product_upper=product.upper(),
        context=retrieved_context.context,
        sources=", ".join(retrieved_context.sources),
    )


def build_classification_prompt(question: str, product: str = "EstoqueUni") -> str:
    return CLASSIFICATION_PROMPT.format(
        product=product, category=product.lower(), question=question
    )


def build_verification_prompt(question: str, answer: str, context: str) -> str:
    return VERIFICATION_PROMPT.format(question=question, answer=answer, context=context)


def build_accuracy_prompt(answer: str, expected: str) -> str:
    return ACCURACY_PROMPT.format(answer=answer, expected=expected)
