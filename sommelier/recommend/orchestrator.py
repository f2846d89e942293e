"""
推荐流程编排

1. 校验提示词
2. 读取完整游戏库
3. 选择策略：游戏库为空 / 没有 LLM / 整库模式 / 抽样匹配模式
4. LLM 结果校验失败时退回确定性推荐
5. 依次补充价格
"""

import random
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from sommelier.config import settings
from sommelier.database.crud import game_crud
from sommelier.logging_config import get_logger
from sommelier.matching.catalog_sampler import sample
from sommelier.matching.match_scorer import MatchConfig, MatchKind, TitleMatcher
from sommelier.matching.prompt_criteria import PromptCriteria, extract_criteria
from sommelier.recommend.fallback import FallbackRecommender, build_recommendation, generate_pitch
from sommelier.recommend.llm_client import LLMClient, LLMError, ParsedLlmRecommendation
from sommelier.recommend.prompts import SYSTEM_PROMPT, full_catalog_prompt, sample_prompt
from sommelier.schemas.recommendations import (
    PriceBlock,
    Recommendation,
    RecommendationResponse,
    ResponseMetadata,
)
from sommelier.utils.logger import log_performance, log_recommendation

logger = get_logger(__name__)

STRATEGY_FULL_CATALOG = "full_catalog"
STRATEGY_SAMPLE_AND_MATCH = "sample_and_match"
STRATEGY_FALLBACK = "fallback"
STRATEGY_EMPTY = "empty"

MAX_FOLLOW_UPS = 3


class InvalidPromptError(ValueError):
    """提示词为空或过长"""


class RecommendationValidationError(Exception):
    """LLM 路径产出的推荐数量或格式不满足要求"""


def _lead_from(item: ParsedLlmRecommendation, game: Any) -> str:
    if item.reasoning and item.reasoning.strip():
        return item.reasoning.strip()
    return f"Fits the {game.theme or 'kind of'} game you described"


class RecommendationOrchestrator:
    """
    推荐编排器

    Args:
        session_maker: 会话工厂
        llm: LLM 客户端，None 表示只使用确定性推荐
        price_resolver: 价格解析器，None 表示不补充价格
        fallback: 确定性推荐器
        match_config: 标题匹配阈值
        rng: 抽样使用的随机数生成器
    """

    def __init__(
        self,
        session_maker: async_sessionmaker,
        llm: Optional[LLMClient] = None,
        price_resolver=None,
        fallback: Optional[FallbackRecommender] = None,
        match_config: Optional[MatchConfig] = None,
        rng: Optional[random.Random] = None,
        full_catalog_threshold: Optional[int] = None,
        sample_target_size: Optional[int] = None,
        full_catalog_request_count: Optional[int] = None,
        sample_request_count: Optional[int] = None,
        recommendation_count: Optional[int] = None,
        acceptance_threshold: Optional[float] = None,
        max_prompt_length: Optional[int] = None
    ):
        self.session_maker = session_maker
        self.llm = llm
        self.price_resolver = price_resolver
        self.fallback = fallback or FallbackRecommender()
        self.match_config = match_config or MatchConfig()
        self.rng = rng
        self.full_catalog_threshold = full_catalog_threshold or settings.FULL_CATALOG_THRESHOLD
        self.sample_target_size = sample_target_size or settings.SAMPLE_TARGET_SIZE
        self.full_catalog_request_count = full_catalog_request_count or settings.FULL_CATALOG_REQUEST_COUNT
        self.sample_request_count = sample_request_count or settings.SAMPLE_REQUEST_COUNT
        self.recommendation_count = recommendation_count or settings.RECOMMENDATION_COUNT
        self.acceptance_threshold = (
            acceptance_threshold if acceptance_threshold is not None else settings.MATCH_ACCEPTANCE_THRESHOLD
        )
        self.max_prompt_length = max_prompt_length or settings.MAX_PROMPT_LENGTH

    def validate_prompt(self, prompt: Optional[str]) -> str:
        """去掉首尾空白并检查长度"""
        cleaned = (prompt or "").strip()
        if not cleaned:
            raise InvalidPromptError("Prompt must not be empty")
        if len(cleaned) > self.max_prompt_length:
            raise InvalidPromptError(f"Prompt must be at most {self.max_prompt_length} characters")
        return cleaned

    async def _load_catalog(self) -> List[Any]:
        with log_performance("catalog_load", logger):
            async with self.session_maker() as db:
                return await game_crud.get_all_games(db, page_size=settings.CATALOG_PAGE_SIZE)

    async def recommend(self, prompt: str, result_count: Optional[int] = None) -> RecommendationResponse:
        """
        端到端推荐流程

        Args:
            prompt: 用户提示词
            result_count: 返回数量，默认 RECOMMENDATION_COUNT

        Returns:
            RecommendationResponse

        Raises:
            InvalidPromptError: 提示词不合法（不会调用任何下游）
        """
        start_time = time.time()
        prompt = self.validate_prompt(prompt)
        count = result_count or self.recommendation_count

        # 1. 读取游戏库
        catalog = await self._load_catalog()
        criteria = extract_criteria(prompt)
        needs = criteria.describe()

        if not catalog:
            logger.warning("Game catalog is empty, returning empty recommendations")
            return RecommendationResponse(
                recommendations=[],
                follow_ups=["The game catalog is empty. Import games before asking for recommendations."],
                metadata=ResponseMetadata(
                    interpreted_needs=needs,
                    notes="No games available in the catalog.",
                    strategy=STRATEGY_EMPTY,
                    catalog_size=0,
                ),
            )

        # 2. LLM 路径
        response = None
        llm_time = None
        fallback_note = "Language model not configured; recommendations are ranked by keyword scoring."
        if self.llm is not None:
            llm_start = time.time()
            try:
                if len(catalog) <= self.full_catalog_threshold:
                    response = await self._full_catalog(prompt, catalog, needs)
                else:
                    response = await self._sample_and_match(prompt, catalog, count, criteria, needs)
            except LLMError as e:
                logger.warning(f"LLM unavailable, falling back to keyword ranking: {e}")
                fallback_note = "Language model unavailable; recommendations are ranked by keyword scoring."
            except (ValidationError, RecommendationValidationError) as e:
                logger.warning(f"LLM recommendations failed validation, falling back: {e}")
                fallback_note = "Language model output was unusable; recommendations are ranked by keyword scoring."
            llm_time = (time.time() - llm_start) * 1000

        # 3. 确定性推荐
        if response is None:
            response = RecommendationResponse(
                recommendations=self.fallback.recommend(prompt, catalog, count),
                metadata=ResponseMetadata(
                    interpreted_needs=needs,
                    notes=fallback_note,
                    strategy=STRATEGY_FALLBACK,
                    catalog_size=len(catalog),
                ),
            )

        # 4. 补充价格
        pricing_start = time.time()
        await self._attach_prices(response.recommendations, catalog)
        pricing_time = (time.time() - pricing_start) * 1000

        total_time = (time.time() - start_time) * 1000
        log_recommendation(
            strategy=response.metadata.strategy,
            catalog_size=len(catalog),
            recommendations_count=len(response.recommendations),
            total_time_ms=total_time,
            llm_time_ms=llm_time,
            pricing_time_ms=pricing_time if self.price_resolver is not None else None,
        )
        return response

    async def _full_catalog(self, prompt: str, catalog: Sequence[Any], needs: List[str]) -> RecommendationResponse:
        """整库模式：LLM 只能从游戏库中选，标题必须完全一致（忽略大小写）"""
        payload = await self.llm.recommend(
            SYSTEM_PROMPT, full_catalog_prompt(prompt, catalog, self.full_catalog_request_count)
        )

        by_title: Dict[str, Any] = {}
        for game in catalog:
            by_title.setdefault(game.title.strip().lower(), game)

        issues: List[str] = []
        recommendations: List[Recommendation] = []
        seen = set()
        for item in payload.recommendations:
            game = by_title.get(item.title.lower())
            if game is None:
                issues.append(f"'{item.title}' is not in the catalog and was dropped")
                continue
            if game.id in seen:
                continue
            seen.add(game.id)

            catalog_mechanics = set(game.mechanic_list)
            invented = [m for m in item.mechanics if m not in catalog_mechanics]
            if invented:
                issues.append(f"Corrected mechanics for {game.title}: removed {', '.join(invented)}")

            recommendations.append(build_recommendation(game, pitch=item.pitch or "", lead=_lead_from(item, game)))

        recommendations = recommendations[:self.full_catalog_request_count]
        if len(recommendations) < self.recommendation_count:
            raise RecommendationValidationError(
                f"Only {len(recommendations)} catalog titles in LLM output, need {self.recommendation_count}"
            )

        return RecommendationResponse(
            recommendations=recommendations,
            metadata=ResponseMetadata(
                interpreted_needs=needs,
                notes=payload.honest_assessment or "",
                strategy=STRATEGY_FULL_CATALOG,
                catalog_size=len(catalog),
                validation_issues=issues,
            ),
        )

    async def _sample_and_match(
        self,
        prompt: str,
        catalog: Sequence[Any],
        count: int,
        criteria: PromptCriteria,
        needs: List[str]
    ) -> RecommendationResponse:
        """抽样模式：LLM 可以推荐样本以外的游戏，再用模糊匹配对回游戏库"""
        sampled = sample(prompt, catalog, self.sample_target_size, rng=self.rng)
        payload = await self.llm.recommend(
            SYSTEM_PROMPT, sample_prompt(prompt, sampled.games, self.sample_request_count)
        )

        matcher = TitleMatcher(catalog, self.match_config)
        issues: List[str] = []
        unmatched: List[str] = []
        accepted: List[Tuple[float, int, Any, ParsedLlmRecommendation]] = []
        for position, item in enumerate(payload.recommendations):
            result = matcher.match(item.title)
            if not result.matched or result.confidence < self.acceptance_threshold:
                unmatched.append(item.title)
                if result.matched:
                    issues.append(
                        f"'{item.title}' only loosely matched '{result.game.title}' ({result.confidence:.2f}), skipped"
                    )
                continue
            if result.kind == MatchKind.FUZZY:
                issues.append(f"Matched '{item.title}' to '{result.game.title}' ({result.confidence:.2f})")
            accepted.append((result.confidence, position, result.game, item))

        # 置信度高的优先，同一游戏只保留一次
        accepted.sort(key=lambda entry: (-entry[0], entry[1]))
        chosen: List[Recommendation] = []
        chosen_ids = set()
        for _, _, game, item in accepted:
            if game.id in chosen_ids:
                continue
            chosen_ids.add(game.id)
            chosen.append(build_recommendation(game, pitch=item.pitch or "", lead=_lead_from(item, game)))
            if len(chosen) >= count:
                break

        if len(chosen) < count:
            chosen.extend(await self._fill_shortfall(prompt, catalog, criteria, chosen_ids, count - len(chosen)))

        if len(chosen) != count:
            raise RecommendationValidationError(f"Sample path produced {len(chosen)} recommendations, need {count}")

        follow_ups = []
        if unmatched:
            follow_ups.append(
                f"I also wanted to recommend {' and '.join(unmatched[:2])}, but they're not in our catalog."
            )
            follow_ups.append("Want me to suggest similar games that we do have?")

        return RecommendationResponse(
            recommendations=chosen,
            follow_ups=follow_ups[:MAX_FOLLOW_UPS],
            metadata=ResponseMetadata(
                interpreted_needs=needs,
                notes=payload.honest_assessment or "",
                strategy=STRATEGY_SAMPLE_AND_MATCH,
                catalog_size=len(catalog),
                validation_issues=issues,
            ),
        )

    async def _fill_shortfall(
        self,
        prompt: str,
        catalog: Sequence[Any],
        criteria: PromptCriteria,
        chosen_ids: set,
        needed: int
    ) -> List[Recommendation]:
        """有复杂度、主题或机制条件时先按条件查询补足，仍不够时按确定性打分补足"""
        rng = random.Random(self.fallback.seed)
        extras: List[Recommendation] = []

        if criteria.has_query_filters:
            try:
                async with self.session_maker() as db:
                    games = await game_crud.get_games_by_criteria(
                        db,
                        min_complexity=criteria.complexity_min,
                        max_complexity=criteria.complexity_max,
                        themes=criteria.themes,
                        mechanics=criteria.mechanics,
                        exclude_ids=chosen_ids,
                        limit=needed,
                    )
            except SQLAlchemyError as e:
                logger.warning(f"Criteria query failed while filling recommendations: {e}")
                games = []
            for game in games:
                chosen_ids.add(game.id)
                extras.append(build_recommendation(
                    game,
                    pitch=generate_pitch(game, prompt, rng),
                    lead="Matches the preferences in your request",
                ))

        if len(extras) < needed:
            for score, game in self.fallback.rank(prompt, catalog):
                if len(extras) >= needed:
                    break
                if game.id in chosen_ids:
                    continue
                chosen_ids.add(game.id)
                extras.append(build_recommendation(
                    game,
                    pitch=generate_pitch(game, prompt, rng),
                    lead=f"Score: {score:.1f} - good match for your request",
                ))

        return extras[:needed]

    async def _attach_prices(self, recommendations: List[Recommendation], catalog: Sequence[Any]) -> None:
        """逐个解析价格；失败时价格保持为空"""
        if self.price_resolver is None:
            return

        games = {game.id: game for game in catalog}
        for recommendation in recommendations:
            game = games.get(recommendation.id)
            if game is None:
                continue
            try:
                price = await self.price_resolver.resolve_price(game.id, game.title, bgg_id=game.bgg_id)
            except Exception as e:
                logger.warning(f"Price lookup failed for {game.title}: {e}")
                continue
            recommendation.price = PriceBlock(
                amount=price.price,
                currency=price.currency,
                store=price.store_name,
                url=price.url,
                source=price.source,
            )
