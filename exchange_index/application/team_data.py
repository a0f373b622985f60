# exchange_index/application/team_data.py

import re

from exchange_index.domain.interfaces import ContentTreePort, Selector
from exchange_index.domain.models import TeamData, TeamMember


TEAM_LIST_ID      = "team-members-list"
COUNT_BADGE_STYLE = "background-color"


class TeamDataExtractor:
    """
    Reads the contributor list from the page: one `li` per member,
    the name in its first link and the contribution count in a coloured
    badge span.
    """

    def extract(self, tree: ContentTreePort) -> TeamData:
        team = TeamData()

        try:
            team_list = tree.select_first(Selector(element_id=TEAM_LIST_ID))
            if team_list is None:
                return team

            for item in tree.select(Selector(tag="li"), within=team_list):
                name_link = tree.select_first(Selector(tag="a"), within=item)
                badge = self._find_count_badge(tree, item)
                if name_link is None or badge is None:
                    continue

                team.members.append(TeamMember(
                    name=tree.text(name_link).strip(),
                    contributions=self._parse_count(tree.text(badge)),
                ))
        except Exception as error:
            print(f"[TeamDataExtractor] ⚠ Failed to read team members: {error}")

        return team

    @staticmethod
    def _find_count_badge(tree: ContentTreePort, item):
        for span in tree.select(Selector(tag="span", attribute="style"), within=item):
            if COUNT_BADGE_STYLE in (tree.get_attribute(span, "style") or ""):
                return span
        return None

    @staticmethod
    def _parse_count(text: str) -> int:
        # leading digits only, so "12 entries" reads as 12
        match = re.match(r"\s*(\d+)", text)
        return int(match.group(1)) if match else 0
