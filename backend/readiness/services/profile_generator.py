import json
import logging
from typing import Any, Protocol

from openai import AsyncOpenAI

from readiness import config
from readiness.models.assessment import GeneratedContent, ProductInfo
from readiness.models.service import ProfileRequest, ProfileResponse
from readiness.scoring.gap_analyzer import compute_gap
from readiness.services.insight_orchestrator import derive_product_name

LOGGER = logging.getLogger(__name__)

PROFILE_SYSTEM_PROMPT = (
    "You are a B2B go-to-market analyst. Describe the buyers who realistically purchase a product, "
    "grounded in how they evaluate, budget for, and approve software."
)

PROFILE_USER_PROMPT_TEMPLATE = """
Product: {product_name}
Business model: {business_model}
Description:
{product_description}

Key features:
{key_features}

How the founder describes their ideal customer:
{ideal_customer}

Provide JSON with keys:
- icpGenerated: ideal customer profile paragraph (company size, industry, pains, buying process)
- tbpGenerated: target buyer persona paragraph (role, priorities, objections, evaluation criteria)
""".strip()


class ProfileService(Protocol):
    async def generate_profiles(self, payload: ProfileRequest) -> ProfileResponse: ...


def build_profile_prompt(product_info: ProductInfo) -> str:
    return PROFILE_USER_PROMPT_TEMPLATE.format(
        product_name=derive_product_name(product_info.productName, product_info.productDescription),
        business_model=product_info.businessModel,
        product_description=product_info.productDescription,
        key_features=product_info.keyFeatures or "Not provided.",
        ideal_customer=product_info.idealCustomerDescription or "Not provided.",
    )


class ProfileGenerator:
    """Produces the ICP / buyer persona reference texts and the buyer gap.

    With an OpenAI key the profiles are generated directly; otherwise, or when
    that fails, the assessment backend's profile endpoint is used. Any failure
    yields None and leaves the session's generated content unset.
    """

    def __init__(
        self,
        service: ProfileService | None = None,
        api_key: str | None = None,
        model: str | None = None,
        openai_client: Any | None = None,
    ) -> None:
        self._service = service
        self._model = model or config.openai_profile_model()
        self._openai_client = openai_client
        if self._openai_client is None:
            key = api_key or config.openai_api_key()
            if key:
                self._openai_client = AsyncOpenAI(api_key=key)

    async def generate(self, session_id: str, product_info: ProductInfo) -> GeneratedContent | None:
        profiles: dict[str, str] | None = None
        provider = "none"
        if self._openai_client is not None:
            profiles = await self._generate_with_openai(product_info)
            provider = "openai"
        if profiles is None and self._service is not None:
            profiles = await self._generate_with_service(session_id, product_info)
            provider = "service"
        if not profiles:
            LOGGER.warning("No reference profiles generated for %s", session_id)
            return None

        icp = profiles.get("icpGenerated") or None
        tbp = profiles.get("tbpGenerated") or None
        if icp is None and tbp is None:
            LOGGER.warning("Reference profiles for %s came back empty (%s)", session_id, provider)
            return None

        user_text = product_info.idealCustomerDescription or product_info.productDescription
        content = GeneratedContent(icpGenerated=icp, tbpGenerated=tbp)
        gap = compute_gap(user_text, content.combined_text())
        LOGGER.info("Reference profiles for %s generated via %s (gap %d%%)", session_id, provider, gap)
        return content.model_copy(update={"buyerGap": gap})

    async def _generate_with_openai(self, product_info: ProductInfo) -> dict[str, str] | None:
        try:
            response = await self._openai_client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": PROFILE_SYSTEM_PROMPT},
                    {"role": "user", "content": build_profile_prompt(product_info)},
                ],
                response_format={"type": "json_object"},
                temperature=0.3,
            )
            content = response.choices[0].message.content or "{}"
            payload = json.loads(content)
        except Exception as exc:  # external API protection
            LOGGER.warning("OpenAI profile generation failed: %s", exc)
            return None
        if not isinstance(payload, dict):
            return None
        return {
            "icpGenerated": str(payload.get("icpGenerated") or "").strip(),
            "tbpGenerated": str(payload.get("tbpGenerated") or "").strip(),
        }

    async def _generate_with_service(self, session_id: str, product_info: ProductInfo) -> dict[str, str] | None:
        request = ProfileRequest(
            sessionId=session_id,
            productName=derive_product_name(product_info.productName, product_info.productDescription),
            productDescription=product_info.productDescription,
            businessModel=product_info.businessModel,
            keyFeatures=product_info.keyFeatures,
            idealCustomerDescription=product_info.idealCustomerDescription,
        )
        try:
            response = await self._service.generate_profiles(request)
        except Exception as exc:
            LOGGER.warning("Profile service failed for %s: %s", session_id, exc)
            return None
        return {
            "icpGenerated": (response.icpGenerated or "").strip(),
            "tbpGenerated": (response.tbpGenerated or "").strip(),
        }
