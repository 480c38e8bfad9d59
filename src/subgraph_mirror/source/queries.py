"""
GraphQL documents sent to the subgraph.

Every document selects `_meta { block { number } }` so the response carries
the block height it was answered at.
"""

from __future__ import annotations

from typing import Final

_TRANSACTION = """
      transaction {
        id
        blockNumber
        timestamp
      }"""

_SERIES = """
      tokenMinuteData(first: 60, orderBy: periodStartUnix, orderDirection: desc) {
        id
        periodStartUnix
        priceUSD
        volume
        volumeUSD
        open
        high
        low
        close
        totalValueLocked
        totalValueLockedUSD
      }
      tokenHourData(first: 168, orderBy: periodStartUnix, orderDirection: desc) {
        id
        periodStartUnix
        priceUSD
        volume
        volumeUSD
        open
        high
        low
        close
        totalValueLocked
        totalValueLockedUSD
      }
      tokenDayData(first: 90, orderBy: date, orderDirection: desc) {
        id
        date
        priceUSD
        dailyVolumeToken
        dailyVolumeUSD
        totalLiquidityToken
        totalLiquidityUSD
      }"""

_TOKEN_FIELDS = f"""
      id
      symbol
      name
      decimals
      totalSupply
      tradeVolume
      tradeVolumeUSD
      txCount
      totalLiquidity
      derivedMON{_SERIES}"""

_PAIR_FIELDS = """
      id
      token0 { id symbol name }
      token1 { id symbol name }
      reserve0
      reserve1
      totalSupply
      reserveUSD
      token0Price
      token1Price
      volumeUSD
      txCount
      createdAtTimestamp
      createdAtBlockNumber"""

_ACCOUNT_FIELDS = """
      id
      usdSwapped
      liquidityPositions { id liquidityTokenBalance }
      listings { id price active }
      contributions { id amount icoRequest { numOfRequest } }
      icoRequests { id numOfRequest }
      createdProjects { id icoId }"""

META_QUERY: Final[str] = """
query GetCurrentBlock {
  _meta {
    block {
      number
    }
  }
}
"""
"""Block height only. Used for health checks."""

FULL_QUERY: Final[str] = f"""
query GetAllInitialData($first: Int!) {{
  _meta {{ block {{ number }} }}
  transactions(first: 5) {{ id blockNumber timestamp gasUsed }}
  icorequests(first: $first, orderBy: createdAt, orderDirection: desc) {{
      id
      numOfRequest
      creator {{ id }}
      createdAt
      totalContributions
      totalContributors
      active{_TRANSACTION}
  }}
  contributions(first: $first, orderBy: timestamp, orderDirection: desc) {{
      id
      icoRequest {{ id numOfRequest }}
      numOfProject
      contributor {{ id }}
      amount
      timestamp{_TRANSACTION}
  }}
  projects(first: $first, orderBy: createdAt, orderDirection: desc) {{
      id
      icoId
      creator {{ id }}
      token {{ id name symbol decimals totalSupply }}
      fundsManager {{ id }}
      createdAt{_TRANSACTION}
  }}
  erc20Tokens(first: $first, orderBy: totalSupply, orderDirection: desc) {{
      id
      name
      symbol
      decimals
      totalSupply
      derivedUSD
      totalTransfers
      totalHolders
  }}
  listings(first: $first, orderBy: createdAt, orderDirection: desc) {{
      id
      seller {{ id }}
      nftContract
      tokenId
      price
      active
      createdAt
      updatedAt
  }}
  sales(first: $first, orderBy: timestamp, orderDirection: desc) {{
      id
      seller {{ id }}
      buyer {{ id }}
      nftContract
      tokenId
      price
      timestamp{_TRANSACTION}
  }}
  tokens(first: $first, orderBy: txCount, orderDirection: desc) {{{_TOKEN_FIELDS}
  }}
  pairs(first: $first, orderBy: txCount, orderDirection: desc) {{{_PAIR_FIELDS}
  }}
  accounts(first: $first, orderBy: usdSwapped, orderDirection: desc) {{{_ACCOUNT_FIELDS}
  }}
  checkpoints(first: $first, orderBy: timestamp, orderDirection: desc) {{
      id
      fundsManager {{ id }}
      amount
      timestamp{_TRANSACTION}
  }}
  lpTokenLocks(first: $first) {{
      id
      fundsManager {{ id }}
      amount
      unlockTime
  }}
  bonusClaims(first: $first) {{
      id
      user {{ id }}
      amount1
      timestamp
  }}
  globalStats(id: "1") {{
      id
      totalProjects
      totalTokensCreated
      totalICORequests
      totalContributions
      totalContributionValue
      totalListings
      totalSales
      totalVolume
      totalVolumeUSD
  }}
  marketplaceStats(id: "1") {{
      id
      totalListings
      totalSales
      totalVolume
      totalVolumeUSD
  }}
  piculeFactories(first: 1) {{
      id
      pairCount
      totalVolumeUSD
      totalLiquidityUSD
      txCount
  }}
}}
"""
"""Complete snapshot of every entity kind, `$first` rows per collection."""

DELTA_QUERY: Final[str] = f"""
query GetUpdatesFromBlock($fromBlock: Int!) {{
  _meta {{ block {{ number }} }}
  icorequests(where: {{ transaction_: {{ blockNumber_gt: $fromBlock }} }}) {{
      id
      numOfRequest
      creator {{ id }}
      createdAt
      totalContributions
      totalContributors
      active{_TRANSACTION}
  }}
  contributions(where: {{ transaction_: {{ blockNumber_gt: $fromBlock }} }}) {{
      id
      icoRequest {{ id numOfRequest }}
      numOfProject
      contributor {{ id }}
      amount
      timestamp{_TRANSACTION}
  }}
  projects(where: {{ transaction_: {{ blockNumber_gt: $fromBlock }} }}) {{
      id
      icoId
      creator {{ id }}
      token {{ id name symbol decimals totalSupply }}
      fundsManager {{ id }}
      createdAt{_TRANSACTION}
  }}
  listings(where: {{ createdAt_gt: $fromBlock }}) {{
      id
      seller {{ id }}
      nftContract
      tokenId
      price
      active
      createdAt
      updatedAt
  }}
  sales(where: {{ transaction_: {{ blockNumber_gt: $fromBlock }} }}) {{
      id
      seller {{ id }}
      buyer {{ id }}
      nftContract
      tokenId
      price
      timestamp{_TRANSACTION}
  }}
  tokens(where: {{ lastMinuteRecorded_gt: $fromBlock }}) {{{_TOKEN_FIELDS}
  }}
  pairs(where: {{ createdAtBlockNumber_gt: $fromBlock }}) {{{_PAIR_FIELDS}
  }}
  checkpoints(where: {{ transaction_: {{ blockNumber_gt: $fromBlock }} }}) {{
      id
      fundsManager {{ id }}
      amount
      timestamp{_TRANSACTION}
  }}
}}
"""
"""Entities created or touched after `$fromBlock`."""
