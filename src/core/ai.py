# src/core/ai.py
import json
import datetime
import logging
from typing import Dict, Any, Union

# Importações para Gemini
import google.generativeai as genai
from google.generativeai.types import HarmCategory, HarmBlockThreshold

from src.config import GOOGLE_API_KEY, GEMINI_MODEL
from src.core.exceptions import ExtractionError
from src.core.models import CATEGORIES, DEFAULT_CATEGORY

logger = logging.getLogger(__name__)

genai.configure(api_key=GOOGLE_API_KEY)

safety_settings = {
    HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_HATE_SPEECH: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT: HarmBlockThreshold.BLOCK_NONE,
    HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT: HarmBlockThreshold.BLOCK_NONE,
}


def ask_gemini(prompt: str, model: str = GEMINI_MODEL) -> str:
    """Envia um prompt para o Gemini. Levanta ExtractionError se não houver resposta utilizável."""
    try:
        model_instance = genai.GenerativeModel(
            model_name=model,
            safety_settings=safety_settings,
            generation_config={"response_mime_type": "application/json"},
        )
        response = model_instance.generate_content(prompt)
    except Exception as e:
        raise ExtractionError(f"Erro ao conectar com Gemini: {e}") from e

    # resposta bloqueada ou vazia
    if not response.parts:
        raise ExtractionError("Gemini retornou uma resposta vazia ou bloqueada.")
    return response.text.strip()


def _parse_json_object(response_text: str) -> Dict[str, Any]:
    json_start = response_text.find("{")
    json_end = response_text.rfind("}")
    if json_start == -1 or json_end == -1:
        raise ExtractionError(f"Nenhum JSON na resposta: {response_text}")

    json_str = response_text[json_start : json_end + 1]
    json_str = "\n".join(
        [line for line in json_str.split("\n") if not line.strip().startswith("//")]
    )
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"JSON inválido do Gemini: {e}") from e


def _normalize_amount(value: Any) -> float:
    if isinstance(value, str):
        # "1.234,56" -> 1234.56
        cleaned = value.replace("R$", "").strip()
        if "," in cleaned:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        value = cleaned
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ExtractionError(f"Valor inválido: {value!r}")


def _normalize_date(value: Any) -> str:
    text = str(value or "").strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.datetime.strptime(text, fmt).strftime("%Y-%m-%d")
        except ValueError:
            continue
    raise ExtractionError(f"Data de vencimento inválida: {value!r}")


def extract_boleto_info(text: str) -> Union[Dict[str, Any], None]:
    """
    Extrai título, valor, vencimento, código de barras e categoria do texto de um boleto.
    Qualquer falha resulta em None: o usuário continua podendo cadastrar manualmente.
    """
    if not text or not text.strip():
        return None

    categories_str = ", ".join(CATEGORIES)
    prompt = f"""
    Analise o seguinte texto de um boleto ou fatura e extraia as informações principais.
    Retorne APENAS um objeto JSON, sem nenhum texto explicativo.

    Formato JSON:
    {{"title": "...", "amount": float, "dueDate": "AAAA-MM-DD", "barcode": "..." (ou null), "category": "..."}}

    REGRAS CRÍTICAS:
    1. Se houver uma "Linha Digitável", extraia-a como 'barcode'.
    2. Identifique o valor (amount) como um número decimal.
    3. A data de vencimento (dueDate) deve estar estritamente no formato AAAA-MM-DD. Se encontrar algo como 25/10/2023, converta para 2023-10-25.
    4. Dê um título curto e amigável ao boleto.
    5. Categorize o gasto em uma destas opções: {categories_str}.

    ---
    TEXTO:
    {text}
    ---
    JSON de Saída:
    """
    try:
        response_text = ask_gemini(prompt)
        logger.debug("Gemini response raw: %s", response_text)
        data = _parse_json_object(response_text)

        title = (data.get("title") or "").strip()
        if not title:
            raise ExtractionError("Gemini não retornou um título.")
        category = data.get("category")
        return {
            "title": title,
            "amount": _normalize_amount(data.get("amount")),
            "due_date": _normalize_date(data.get("dueDate")),
            "barcode": data.get("barcode") or None,
            "category": category if category in CATEGORIES else DEFAULT_CATEGORY,
        }
    except ExtractionError as e:
        logger.warning("Erro ao processar boleto com Gemini: %s", e)
        return None
