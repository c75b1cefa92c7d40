#!/usr/bin/env python3
"""Live upstream verification: run by hand with real credentials.

Usage:
  1. Set GOOGLE_MAPS_API_KEY (and DATABASE_URL if the residential store should be hit)
  2. Run: python scripts/verify_apis.py [POSTCODE]

Steps:
  Step 1: Show configuration
  Step 2: postcodes.io lookup
  Step 3: postcodes.io autocomplete
  Step 4: Google Places nearby search
  Step 5: Full aggregated lookup
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_POSTCODE = "SW1A 1AA"


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  [ok]   {msg}")


def fail(msg: str) -> None:
    print(f"  [fail] {msg}")


def info(msg: str) -> None:
    print(f"  [info] {msg}")


async def step1_show_config():
    step_header(1, "Configuration")
    from postcode_lookup.config import settings

    ok(f"postcodes.io: {settings.postcodes_io_url}")
    if settings.has_places_key:
        ok(f"GOOGLE_MAPS_API_KEY: set ({settings.google_maps_api_key[:6]}...)")
    else:
        fail("GOOGLE_MAPS_API_KEY: NOT SET, places search will be skipped")
    info(f"Database: {settings.database_url.split('@')[-1]}")
    return settings.has_places_key


async def step2_resolve(postcode: str):
    step_header(2, "postcodes.io lookup")
    from postcode_lookup.config import settings
    from postcode_lookup.integrations.postcodes_io import PostcodesIOClient

    client = PostcodesIOClient(settings.postcodes_io_url)
    resolution = await client.resolve(postcode)
    if resolution.ok:
        geo = resolution.result
        ok(f"{geo.postcode} -> ({geo.latitude}, {geo.longitude}) {geo.admin_district}")
        return geo
    fail(f"status={resolution.status}")
    return None


async def step3_autocomplete(postcode: str):
    step_header(3, "postcodes.io autocomplete")
    from postcode_lookup.config import settings
    from postcode_lookup.integrations.postcodes_io import PostcodesIOClient

    partial = "".join(postcode.split())[:4]
    info(f"Partial: '{partial}'")
    results = await PostcodesIOClient(settings.postcodes_io_url).autocomplete(partial)
    if results:
        ok(f"Got {len(results)} postcodes: {', '.join(results)}")
        return True
    fail("No autocomplete results")
    return False


async def step4_places(geo):
    step_header(4, "Google Places nearby search")
    from postcode_lookup.config import settings
    from postcode_lookup.errors import PlacesSearchError
    from postcode_lookup.integrations.google_places import GooglePlacesClient

    client = GooglePlacesClient(settings.google_maps_api_key, base_url=settings.google_places_url)
    try:
        places = await client.nearby(geo.latitude, geo.longitude, radius=settings.places_radius_meters)
    except PlacesSearchError as e:
        fail(str(e))
        return False
    ok(f"Got {len(places)} places")
    for p in places[:3]:
        print(f"    - {p.get('name')} | {p.get('vicinity')}")
    return True


async def step5_full_lookup(postcode: str):
    step_header(5, "Full aggregated lookup")
    from postcode_lookup.config import settings
    from postcode_lookup.services.container import ServiceContainer

    services = ServiceContainer(settings)
    await services.database.init()
    try:
        outcome = await services.aggregator.lookup(postcode)
    finally:
        await services.database.close()

    if outcome.status_code != 200:
        fail(f"status={outcome.status_code}")
        return False
    ok(f"{len(outcome.summaries)} summaries")
    for s in outcome.summaries[:5]:
        print(f"    - [{s.source_type}] {s.building_label} | {s.formatted_address}")
    return True


async def main():
    postcode = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_POSTCODE
    print("\nPostcode Lookup: live upstream verification")
    print("=" * 60)

    results = {}
    has_key = await step1_show_config()
    results[1] = True

    geo = await step2_resolve(postcode)
    results[2] = geo is not None

    results[3] = await step3_autocomplete(postcode)

    if geo is None or not has_key or geo.latitude is None:
        print("\n  Skipping places search (no coordinates or no API key)")
        results[4] = False
    else:
        results[4] = await step4_places(geo)

    results[5] = await step5_full_lookup(postcode)

    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "PASS" if passed else "FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
