"""
Amazon Product Advertising API 5.0 客户端

只用到 SearchItems 接口；请求使用 AWS Signature Version 4 签名。
"""

import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx

from sommelier.config import settings
from sommelier.logging_config import get_logger
from sommelier.pricing.product_scoring import MarketplaceProduct
from sommelier.pricing.throttle import RequestThrottle

logger = get_logger(__name__)

SERVICE = "ProductAdvertisingAPI"
SEARCH_PATH = "/paapi5/searchitems"
SEARCH_TARGET = "com.amazon.paapi5.v1.ProductAdvertisingAPIv1.SearchItems"
SIGNED_HEADERS = "host;x-amz-date;x-amz-target"
MAX_ITEM_COUNT = 5


class MarketplaceError(Exception):
    """商城接口调用失败"""


def _sha256_hex(payload: str) -> str:
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def _hmac(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def signing_key(secret_key: str, date_stamp: str, region: str, service: str = SERVICE) -> bytes:
    """AWS4 签名密钥：AWS4+secret -> date -> region -> service -> aws4_request"""
    k_date = _hmac(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = _hmac(k_date, region)
    k_service = _hmac(k_region, service)
    return _hmac(k_service, "aws4_request")


def build_authorization(
    access_key: str,
    secret_key: str,
    host: str,
    region: str,
    amz_date: str,
    payload: str,
    method: str = "POST",
    path: str = SEARCH_PATH,
    target: str = SEARCH_TARGET
) -> str:
    """
    构造 Authorization 头

    Args:
        amz_date: 形如 20240101T120000Z 的时间戳
        payload: 请求体 JSON 字符串
    """
    date_stamp = amz_date[:8]
    credential_scope = f"{date_stamp}/{region}/{SERVICE}/aws4_request"
    canonical_headers = (
        f"host:{host}\n"
        f"x-amz-date:{amz_date}\n"
        f"x-amz-target:{target}\n"
    )
    canonical_request = "\n".join([
        method, path, "", canonical_headers, SIGNED_HEADERS, _sha256_hex(payload)
    ])
    string_to_sign = "\n".join([
        "AWS4-HMAC-SHA256", amz_date, credential_scope, _sha256_hex(canonical_request)
    ])
    signature = hmac.new(
        signing_key(secret_key, date_stamp, region),
        string_to_sign.encode("utf-8"),
        hashlib.sha256
    ).hexdigest()
    return (
        f"AWS4-HMAC-SHA256 Credential={access_key}/{credential_scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )


class AmazonClient:
    """
    Amazon 商品搜索

    Args:
        http_client: 共享的 httpx 客户端
        throttle: 进程内共享的请求节流器
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        throttle: RequestThrottle,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        partner_tag: Optional[str] = None,
        host: Optional[str] = None,
        region: Optional[str] = None,
        marketplace: Optional[str] = None
    ):
        self.http_client = http_client
        self.throttle = throttle
        self.access_key = access_key if access_key is not None else settings.AMAZON_ACCESS_KEY
        self.secret_key = secret_key if secret_key is not None else settings.AMAZON_SECRET_KEY
        self.partner_tag = partner_tag if partner_tag is not None else settings.AMAZON_PARTNER_TAG
        self.host = host or settings.AMAZON_HOST
        self.region = region or settings.AMAZON_REGION
        self.marketplace = marketplace or settings.AMAZON_MARKETPLACE

    @property
    def enabled(self) -> bool:
        return bool(self.access_key and self.secret_key and self.partner_tag)

    def _payload(self, keywords: str, item_count: int) -> Dict[str, Any]:
        return {
            "PartnerTag": self.partner_tag,
            "PartnerType": "Associates",
            "Marketplace": self.marketplace,
            "Keywords": keywords,
            "SearchIndex": "ToysAndGames",
            "ItemCount": min(item_count, MAX_ITEM_COUNT),
            "Resources": [
                "ItemInfo.Title",
                "Offers.Summaries.LowestPrice",
                "Images.Primary.Medium",
            ],
        }

    async def search_products(self, keywords: str, item_count: int = MAX_ITEM_COUNT) -> List[MarketplaceProduct]:
        """
        按关键词搜索商品

        Raises:
            MarketplaceError: 未配置凭证、HTTP 错误或响应无法解析
        """
        if not self.enabled:
            raise MarketplaceError("Amazon credentials not configured")

        payload = json.dumps(self._payload(keywords, item_count))
        async with self.throttle.slot():
            amz_date = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
            headers = {
                "Content-Type": "application/json; charset=utf-8",
                "Host": self.host,
                "X-Amz-Date": amz_date,
                "X-Amz-Target": SEARCH_TARGET,
                "Authorization": build_authorization(
                    self.access_key, self.secret_key, self.host, self.region, amz_date, payload
                ),
            }
            try:
                response = await self.http_client.post(
                    f"https://{self.host}{SEARCH_PATH}", content=payload, headers=headers
                )
            except httpx.HTTPError as e:
                raise MarketplaceError(f"Amazon request failed: {e}") from e

        if response.status_code == 429:
            raise MarketplaceError("Amazon rate limit exceeded")
        if response.status_code >= 400:
            raise MarketplaceError(f"Amazon HTTP {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise MarketplaceError("Amazon returned invalid JSON") from e

        products = self.parse_search_response(data)
        logger.info(f"Amazon search '{keywords}' returned {len(products)} products")
        return products

    def parse_search_response(self, data: Dict[str, Any]) -> List[MarketplaceProduct]:
        """解析 SearchItems 响应"""
        items = ((data or {}).get("SearchResult") or {}).get("Items") or []
        products = []
        for item in items:
            asin = item.get("ASIN")
            if not asin:
                continue
            title = ((item.get("ItemInfo") or {}).get("Title") or {}).get("DisplayValue") or "Unknown Title"

            price = None
            currency = "USD"
            summaries = (item.get("Offers") or {}).get("Summaries") or []
            if summaries and summaries[0].get("LowestPrice"):
                lowest = summaries[0]["LowestPrice"]
                price = lowest.get("Amount")
                currency = lowest.get("Currency") or currency

            image = (((item.get("Images") or {}).get("Primary") or {}).get("Medium") or {}).get("URL")

            products.append(MarketplaceProduct(
                title=title,
                url=f"https://www.amazon.com/dp/{asin}?tag={self.partner_tag}",
                price=float(price) if price is not None else None,
                currency=currency,
                asin=asin,
                image_url=image,
            ))
        return products
