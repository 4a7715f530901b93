"""
계정 레지스트리

계정 생성/조회/수정/비활성화. 계정은 삭제되지 않는다.
쓰기는 Operation Queue를 통해 accounts/<id> 문서에 적용된다.

기본 계정표: OHADA 계정 코드 기준 (회계 계정 + 자금 계정)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from adapters.interfaces import IDocumentStore
from core.cache.ttl_cache import MISS, TTLCache
from core.constants import CacheKeys, Collections
from core.domain.documents import Account
from core.domain.operations import Operation
from core.errors import AccountNotFoundError, DuplicateAccountError, InvalidOperationError
from core.types import AccountCategory, AccountType, OperationKind
from core.utils.idempotency import make_account_id

if TYPE_CHECKING:
    from worker.queue.queue import OperationQueue

logger = logging.getLogger(__name__)


# (code, denomination, description, category, type)
DEFAULT_ACCOUNTS: list[tuple[str, str, str, str, str]] = [
    # 회계 계정 (COMPTABLE)
    ("101", "Capital social", "Apport initial du propriétaire ou des associés", "ENTRY", "COMPTABLE"),
    ("108", "Compte de l'exploitant", "Apports ou retraits personnels du propriétaire", "ENTRY", "COMPTABLE"),
    ("2183", "Matériel et outillage", "Grill, frigo, mixeur, plancha", "EXIT", "COMPTABLE"),
    ("2184", "Mobilier et matériel de bureau", "Tables, chaises, caisse, tablette", "EXIT", "COMPTABLE"),
    ("2186", "Matériel de transport", "Moto ou triporteur pour livraison", "EXIT", "COMPTABLE"),
    ("31", "Matières premières", "Pain, œufs, viande, lait, fruits, sucre", "EXIT", "COMPTABLE"),
    ("32", "Fournitures consommables", "Emballages, gobelets, pailles, serviettes", "EXIT", "COMPTABLE"),
    ("37", "Produits finis", "Sandwichs, yaourts prêts à vendre", "ENTRY", "COMPTABLE"),
    ("401", "Fournisseurs", "Achats à crédit auprès des fournisseurs", "EXIT", "COMPTABLE"),
    ("4091", "Fournisseurs – avances et acomptes", "Acomptes versés avant livraison", "EXIT", "COMPTABLE"),
    ("411", "Clients", "Ventes à crédit", "ENTRY", "COMPTABLE"),
    ("421", "Prestataires externes", "Paiements aux aides, livreurs", "EXIT", "COMPTABLE"),
    ("4456", "TVA déductible", "TVA sur les achats", "EXIT", "COMPTABLE"),
    ("4457", "TVA collectée", "TVA sur les ventes", "ENTRY", "COMPTABLE"),
    ("467", "Autres comptes divers", "Comptes de régularisation ou prêts temporaires", "ENTRY", "COMPTABLE"),
    ("601", "Achats de matières premières", "Achats de pain, lait, fruits", "EXIT", "COMPTABLE"),
    ("602", "Achats de fournitures consommables", "Achats de gobelets, serviettes, emballages", "EXIT", "COMPTABLE"),
    ("604", "Petits équipements", "Petits matériels non immobilisés", "EXIT", "COMPTABLE"),
    ("611", "Transport", "Livraison, taxi, déplacement d'approvisionnement", "EXIT", "COMPTABLE"),
    ("613", "Loyers et charges locatives", "Loyer du local", "EXIT", "COMPTABLE"),
    ("615", "Entretien et réparations", "Nettoyage, réparations d'équipements", "EXIT", "COMPTABLE"),
    ("616", "Assurances", "Assurance du local ou du matériel", "EXIT", "COMPTABLE"),
    ("623", "Publicité et marketing", "Affiches, flyers, communication en ligne", "EXIT", "COMPTABLE"),
    ("625", "Déplacements et missions", "Dépenses diverses liées à l'activité", "EXIT", "COMPTABLE"),
    ("626", "Téléphone et Internet", "Frais de communication", "EXIT", "COMPTABLE"),
    ("627", "Honoraires", "Comptable, consultant, designer", "EXIT", "COMPTABLE"),
    ("628", "Autres charges externes", "Prestations diverses non classées", "EXIT", "COMPTABLE"),
    ("635", "Impôts et taxes", "Patente, taxes communales", "EXIT", "COMPTABLE"),
    ("641", "Rémunération des prestataires", "Paiements aux collaborateurs occasionnels", "EXIT", "COMPTABLE"),
    ("651", "Intérêts bancaires", "Frais financiers liés à un emprunt", "EXIT", "COMPTABLE"),
    ("658", "Charges diverses de gestion", "Pourboires, dépenses imprévues", "EXIT", "COMPTABLE"),
    ("701", "Vente de produits finis", "Vente de sandwichs et yaourts", "ENTRY", "COMPTABLE"),
    ("707", "Vente de marchandises", "Vente de boissons, biscuits", "ENTRY", "COMPTABLE"),
    ("758", "Autres produits divers", "Revenus accessoires ou exceptionnels", "ENTRY", "COMPTABLE"),
    # 자금 계정 (TRESORERIE)
    ("511", "Banque", "Compte bancaire professionnel", "ENTRY", "TRESORERIE"),
    ("5121", "Mobile Money", "Encaissements ou paiements via mobile money", "ENTRY", "TRESORERIE"),
    ("531", "Caisse", "Encaissements et paiements en espèces", "ENTRY", "TRESORERIE"),
]


async def load_active_account(store: IDocumentStore, account_id: str) -> Account:
    """활성 계정 조회

    Raises:
        AccountNotFoundError: 없거나 비활성
    """
    doc = await store.get(Collections.ACCOUNTS, account_id)
    if doc is None:
        raise AccountNotFoundError(account_id)
    account = Account.from_dict(doc.data)
    if not account.is_active:
        raise AccountNotFoundError(account_id, inactive=True)
    return account


class AccountRegistry:
    """계정 레지스트리

    Args:
        queue: Operation Queue
        document_store: 읽기용 문서 저장소
        cache: 계정 목록 캐시

    사용 예시:
    ```python
    registry = AccountRegistry(queue, document_store, cache)
    await registry.initialize_default_accounts(actor="system:init")

    caisse = await registry.find_by_code("531")
    ```
    """

    def __init__(
        self,
        queue: OperationQueue,
        document_store: IDocumentStore,
        cache: TTLCache,
    ):
        self.queue = queue
        self.document_store = document_store
        self.cache = cache

    async def list_accounts(self, include_inactive: bool = False) -> list[Account]:
        """계정 목록 (코드 순)"""
        accounts = self.cache.get(CacheKeys.ACCOUNTS)
        if accounts is MISS:
            version = self.cache.version
            docs = await self.document_store.list_collection(Collections.ACCOUNTS)
            accounts = sorted(
                (Account.from_dict(doc.data) for doc in docs),
                key=lambda a: (a.code, a.id),
            )
            self.cache.put_if_current(CacheKeys.ACCOUNTS, accounts, version)

        if include_inactive:
            return list(accounts)
        return [a for a in accounts if a.is_active]

    async def get_account(self, account_id: str) -> Account:
        """계정 조회 (비활성 포함)

        Raises:
            AccountNotFoundError: 없음
        """
        doc = await self.document_store.get(Collections.ACCOUNTS, account_id)
        if doc is None:
            raise AccountNotFoundError(account_id)
        return Account.from_dict(doc.data)

    async def find_by_code(self, code: str) -> Account | None:
        """활성 계정 중 코드로 조회"""
        for account in await self.list_accounts():
            if account.code == code:
                return account
        return None

    async def create_account(
        self,
        code: str,
        denomination: str,
        category: str | AccountCategory,
        type: str | AccountType,
        description: str | None = None,
        actor: str = "system",
    ) -> Account:
        """계정 생성

        코드 중복 검사는 활성 계정 목록 기준의 best-effort.

        Raises:
            DuplicateAccountError: 활성 계정에 같은 코드 존재
            InvalidOperationError: 필드 형식 오류
        """
        if not code or not denomination:
            raise InvalidOperationError("code와 denomination은 필수입니다")

        if await self.find_by_code(code) is not None:
            raise DuplicateAccountError(code)

        account_id = make_account_id(code)
        operation = Operation.create(
            kind=OperationKind.CREATE,
            target_collection=Collections.ACCOUNTS,
            target_key=account_id,
            payload={
                "account": {
                    "code": code,
                    "denomination": denomination,
                    "category": _enum_value(category),
                    "type": _enum_value(type),
                    "is_active": True,
                    "description": description,
                },
            },
            actor=actor,
        )
        account: Account = await self.queue.submit(operation)

        logger.info(
            "Account created",
            extra={"account_id": account.id, "code": code, "actor": actor},
        )
        return account

    async def update_account(
        self,
        account_id: str,
        denomination: str | None = None,
        description: str | None = None,
        actor: str = "system",
    ) -> Account:
        """계정명/설명 수정

        Raises:
            AccountNotFoundError: 없거나 비활성
        """
        changes: dict[str, str] = {}
        if denomination is not None:
            if not denomination:
                raise InvalidOperationError("denomination은 비어 있을 수 없습니다")
            changes["denomination"] = denomination
        if description is not None:
            changes["description"] = description

        operation = Operation.create(
            kind=OperationKind.UPDATE,
            target_collection=Collections.ACCOUNTS,
            target_key=account_id,
            payload={"changes": changes},
            actor=actor,
        )
        return await self.queue.submit(operation)

    async def deactivate_account(self, account_id: str, actor: str = "system") -> Account:
        """계정 비활성화 (삭제 의도)

        과거 거래의 참조는 유지되고 새 거래 기록만 막힌다.
        """
        operation = Operation.create(
            kind=OperationKind.DELETE,
            target_collection=Collections.ACCOUNTS,
            target_key=account_id,
            actor=actor,
        )
        account: Account = await self.queue.submit(operation)

        logger.info(
            "Account deactivated",
            extra={"account_id": account_id, "actor": actor},
        )
        return account

    async def initialize_default_accounts(self, actor: str = "system:init") -> list[Account]:
        """기본 계정표 생성 (이미 있는 코드는 건너뜀)

        Returns:
            새로 생성된 계정
        """
        existing = {a.code for a in await self.list_accounts()}
        created: list[Account] = []

        for code, denomination, description, category, account_type in DEFAULT_ACCOUNTS:
            if code in existing:
                continue
            created.append(
                await self.create_account(
                    code=code,
                    denomination=denomination,
                    category=category,
                    type=account_type,
                    description=description,
                    actor=actor,
                )
            )

        if created:
            logger.info(f"기본 계정 생성: {len(created)}건")
        return created


def _enum_value(value: str | AccountCategory | AccountType) -> str:
    return value.value if isinstance(value, (AccountCategory, AccountType)) else value
