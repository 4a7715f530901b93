"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- accounts: 계정 레지스트리
- transactions: 거래 기록/조회/반대 거래
- summaries: 일/주/월/연 집계
- bilans: 일/주/월/연 bilan
- closings: clôture 워크플로우
- queue: 큐 통계 및 dead-letter 관리
"""
