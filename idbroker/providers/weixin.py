# Copyright © The idbroker Developers
# See the AUTHORS file at the top-level directory of this distribution
#
# This file is part of idbroker. It is subject to the license terms
# in the LICENSE file found in the top-level directory of this
# distribution. No part of idbroker, including this file, may be copied,
# modified, propagated, or distributed except according to the terms
# contained in the LICENSE file.

"""Weixin (WeChat) identity provider."""

from idbroker.exceptions import ProviderCallError
from idbroker.models import CanonicalProfile, Credential, ProviderConfig
from idbroker.providers.base import Provider, ProviderResponse

#: Weixin ``sex`` values
GENDERS = {1: "Boy", 2: "Girl"}


class WeixinUserInfo(ProviderResponse):
    """Response of the Weixin ``sns/userinfo`` endpoint."""

    errcode: int = 0
    errmsg: str | None = None
    unionid: str | None = None
    nickname: str | None = None
    sex: int | None = None
    headimgurl: str | None = None


class WeixinProvider(Provider):
    """
    Weixin identity provider.

    Weixin does not share the user email: a placeholder one is made up from
    the username. The ``openid`` returned together with the access token has
    to be sent by the client as a request parameter.
    """

    name = "weixin"
    label = "Weixin"
    username_prefix = "wx"
    placeholder_domain = "yoo.cash"
    url_profile = "https://api.weixin.qq.com/sns/userinfo"

    def fetch_profile(
        self, credential: Credential, config: ProviderConfig
    ) -> CanonicalProfile:
        """Fetch the Weixin user info."""
        if not (openid := credential.params.get("openid")):
            raise ProviderCallError(self.name, "openid is missing")

        with self.session(credential) as session:
            info = self.get(
                session,
                self.url_profile,
                WeixinUserInfo,
                params={
                    "access_token": credential.access_token,
                    "openid": openid,
                },
            )

        # Weixin reports errors with a 200 status and an error code
        if info.errcode:
            raise ProviderCallError(
                self.name, f"error {info.errcode}: {info.errmsg}"
            )
        if not info.unionid:
            raise ProviderCallError(self.name, "user info has no unionid")

        username = self.namespaced_username(info.unionid)
        return CanonicalProfile(
            username=username,
            email=self.placeholder_email(username, config),
            display_name=info.nickname,
            avatar_url=info.headimgurl,
            provider_user_id=info.unionid,
            extra={"gender": GENDERS.get(info.sex, "Secret")},
        )
